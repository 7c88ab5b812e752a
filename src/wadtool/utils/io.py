"""IO helpers shared by the container codecs."""

from __future__ import annotations
from pathlib import Path
from typing import BinaryIO
import struct

from ..formats.constants import COPY_CHUNK_SIZE
from ..formats.errors import WadToolError, truncated_header

__all__ = [
    "copy_exactly",
    "copy_region",
    "read_exact",
    "read_u32s",
    "read_u16s",
    "ensure_dir",
]


def copy_exactly(
    source: BinaryIO,
    destination: BinaryIO,
    max_bytes: int,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> int:
    """Copy up to ``max_bytes`` from the current source position.

    Reaching end of source early is not an error; callers pass oversized
    lengths to mean "copy to end of file". Returns the number of bytes
    actually transferred, which is also how far the source cursor advanced.
    """
    remaining = max(0, max_bytes)
    copied = 0
    while remaining > 0:
        chunk = source.read(min(remaining, chunk_size))
        if not chunk:
            break
        destination.write(chunk)
        copied += len(chunk)
        remaining -= len(chunk)
    return copied


def copy_region(source_path: Path, offset: int, length: int, dst: Path) -> int:
    """Copy ``length`` bytes at ``offset`` of ``source_path`` into ``dst``.

    Opens its own read handle so independent regions never share a cursor.
    """
    with source_path.open("rb") as src, dst.open("wb") as out:
        src.seek(offset)
        return copy_exactly(src, out, length)


def read_exact(
    source: BinaryIO,
    size: int,
    label: str,
    error_cls: type[WadToolError] = WadToolError,
) -> bytes:
    data = source.read(size)
    if len(data) != size:
        raise truncated_header(label, size, len(data), error_cls)
    return data


def read_u32s(
    source: BinaryIO,
    count: int,
    label: str,
    error_cls: type[WadToolError] = WadToolError,
) -> tuple[int, ...]:
    raw = read_exact(source, count * 4, label, error_cls)
    return struct.unpack(f"<{count}I", raw)


def read_u16s(
    source: BinaryIO,
    count: int,
    label: str,
    error_cls: type[WadToolError] = WadToolError,
) -> tuple[int, ...]:
    raw = read_exact(source, count * 2, label, error_cls)
    return struct.unpack(f"<{count}H", raw)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
