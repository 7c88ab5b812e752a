"""Archive directory ("WAD") codec.

Layout: a 2048-byte directory of 256 little-endian ``(u32 offset, u32
length)`` pairs followed by the payloads. The first ``(0, 0)`` pair ends the
list of real entries; unused slots are zero-filled.

``unpack_wad`` seeks to every entry's absolute offset, so it also handles
archives whose payloads are not packed right after the directory.
``rebuild_wad`` packs payloads back-to-back in manifest order starting at
offset 2048. Original inter-payload padding is not preserved unless the
caller asks for ``preserve_offsets``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Sequence
import struct

from ..logging import get_logger
from ..manifest import WadManifest, now
from ..reporting import get_reporter, task
from ..utils.io import copy_exactly, ensure_dir, read_exact
from .constants import (
    COPY_CHUNK_SIZE,
    WAD_DIRECTORY_SIZE,
    WAD_ENTRY_SIZE,
    WAD_MAX_ENTRIES,
)
from .errors import (
    E_OVERLAP,
    E_TOO_MANY_FILES,
    ArchiveFormatError,
)

__all__ = [
    "DirectoryEntry",
    "read_directory",
    "real_entries",
    "pack_directory",
    "plan_packed_entries",
    "unpack_wad",
    "rebuild_wad",
]


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    offset: int
    length: int

    @property
    def is_end(self) -> bool:
        return self.offset == 0 and self.length == 0

    @property
    def end(self) -> int:
        return self.offset + self.length


def read_directory(source: BinaryIO) -> list[DirectoryEntry]:
    """Read all 256 directory slots, sentinel and unused slots included."""
    raw = read_exact(source, WAD_DIRECTORY_SIZE, "wad directory", ArchiveFormatError)
    return [
        DirectoryEntry(*struct.unpack_from("<II", raw, i * WAD_ENTRY_SIZE))
        for i in range(WAD_MAX_ENTRIES)
    ]


def real_entries(directory: Sequence[DirectoryEntry]) -> list[DirectoryEntry]:
    """Entries before the first (0, 0) sentinel."""
    out: list[DirectoryEntry] = []
    for entry in directory:
        if entry.is_end:
            break
        out.append(entry)
    return out


def pack_directory(entries: Sequence[DirectoryEntry]) -> bytes:
    if len(entries) > WAD_MAX_ENTRIES:
        raise ArchiveFormatError(
            code=E_TOO_MANY_FILES,
            message=f"{len(entries)} files exceed the {WAD_MAX_ENTRIES}-entry directory",
            context={"count": len(entries)},
        )
    out = bytearray(WAD_DIRECTORY_SIZE)
    for i, entry in enumerate(entries):
        struct.pack_into("<II", out, i * WAD_ENTRY_SIZE, entry.offset, entry.length)
    return bytes(out)


def plan_packed_entries(sizes: Sequence[int]) -> list[DirectoryEntry]:
    """Back-to-back layout: first payload right after the directory."""
    entries: list[DirectoryEntry] = []
    offset = WAD_DIRECTORY_SIZE
    for size in sizes:
        entries.append(DirectoryEntry(offset, size))
        offset += size
    return entries


def unpack_wad(wad_file: Path, output_dir: Path) -> WadManifest:
    logger = get_logger()
    wad_file = Path(wad_file)
    output_dir = Path(output_dir)
    with wad_file.open("rb") as src:
        entries = real_entries(read_directory(src))
    ensure_dir(output_dir)

    manifest = WadManifest(timestamp=now())
    total_bytes = 0
    rep = get_reporter()
    with task("wad.extract", "Extract WAD entries", total=len(entries)) as stats:
        with wad_file.open("rb") as src:
            for i, entry in enumerate(entries):
                src.seek(entry.offset)
                dst = output_dir / f"{i}.bin"
                with dst.open("wb") as out:
                    copied = copy_exactly(src, out, entry.length)
                if copied != entry.length:
                    logger.warning(
                        "Entry %d truncated: declared %d bytes at %d, read %d",
                        i,
                        entry.length,
                        entry.offset,
                        copied,
                    )
                total_bytes += copied
                manifest.files.append(dst)
                manifest.entries.append((entry.offset, entry.length))
                rep.advance("wad.extract", current_item=dst.name)
        stats.update(files=len(entries), bytes=total_bytes)
    rep.status(
        "Unpack summary: "
        + f"kind=wad source={wad_file.name} files={len(entries)} bytes={total_bytes}"
    )
    return manifest


def _original_entries(
    manifest: WadManifest, sizes: Sequence[int]
) -> list[DirectoryEntry]:
    if len(manifest.entries) != len(manifest.files):
        raise ArchiveFormatError(
            code=E_OVERLAP,
            message="Manifest has no original entry for every file",
            context={
                "files": len(manifest.files),
                "entries": len(manifest.entries),
            },
        )
    entries = [
        DirectoryEntry(offset, size)
        for (offset, _), size in zip(manifest.entries, sizes)
    ]
    ordered = sorted(entries, key=lambda e: e.offset)
    floor = WAD_DIRECTORY_SIZE
    for entry in ordered:
        if entry.offset < floor:
            raise ArchiveFormatError(
                code=E_OVERLAP,
                message=f"Payload at {entry.offset} overlaps previous data ending at {floor}",
                context={"offset": entry.offset, "floor": floor},
            )
        floor = entry.end
    return entries


def rebuild_wad(
    manifest: WadManifest, output_file: Path, *, preserve_offsets: bool = False
) -> int:
    """Write a WAD from the manifest's files; returns bytes written."""
    output_file = Path(output_file)
    sizes = [Path(p).stat().st_size for p in manifest.files]
    if len(sizes) > WAD_MAX_ENTRIES:
        raise ArchiveFormatError(
            code=E_TOO_MANY_FILES,
            message=f"{len(sizes)} files exceed the {WAD_MAX_ENTRIES}-entry directory",
            context={"count": len(sizes)},
        )
    if preserve_offsets:
        entries = _original_entries(manifest, sizes)
    else:
        entries = plan_packed_entries(sizes)

    rep = get_reporter()
    with task("wad.rebuild", "Rebuild WAD", total=len(entries)) as stats:
        with output_file.open("wb") as out:
            out.write(pack_directory(entries))
            order = sorted(range(len(entries)), key=lambda i: entries[i].offset)
            for i in order:
                entry = entries[i]
                pos = out.tell()
                if pos < entry.offset:
                    out.write(b"\x00" * (entry.offset - pos))
                with Path(manifest.files[i]).open("rb") as src:
                    copy_exactly(src, out, entry.length, COPY_CHUNK_SIZE)
                rep.advance("wad.rebuild", current_item=Path(manifest.files[i]).name)
            written = out.tell()
        stats.update(files=len(entries), bytes=written)
    rep.status(
        "Rebuild summary: "
        + f"kind=wad output={output_file.name} files={len(entries)} bytes={written}"
    )
    return written
