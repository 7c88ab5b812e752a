"""Composite level container parser and rebuild.

Header (448 bytes, little-endian)::

    3 x (u32 offset, u32 length)   tex_and_audio, collision_data, model
    5 x (u32 offset, u32 length)   auxiliary blobs s_0..s_4
    64 x u32                       raw offsets
    64 x u16                       model indices

The texture+audio blob is split by fixed budgets from ``LevelLayout``:
texture data, then the reverb parameters, then up to eight streamed audio
buffers. Each audio buffer is written as a minimal VAG file. The collision,
model, and auxiliary blobs are independent seek-then-copy extractions.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Tuple
import struct

from ..config.models import LevelLayout
from ..logging import get_logger
from ..manifest import LevelManifest, now
from ..reporting import get_reporter, task
from ..utils.io import (
    copy_exactly,
    copy_region,
    ensure_dir,
    read_u16s,
    read_u32s,
)
from .constants import (
    LEVEL_AUX_PAIRS,
    LEVEL_HEADER_SIZE,
    LEVEL_MODEL_INDICES,
    LEVEL_NAMED_PAIRS,
    LEVEL_RAW_OFFSETS,
    TILE_HEADER_SIZE,
    VAG_HEADER_SIZE,
    VAG_MAGIC,
    VAG_VERSION,
)
from .errors import LevelFormatError

__all__ = [
    "LevelHeader",
    "read_level_header",
    "pack_level_header",
    "vag_header",
    "tile_header",
    "audio_buffer_sizes",
    "unpack_level",
    "rebuild_level",
]

_PAIR_COUNT = len(LEVEL_NAMED_PAIRS) + LEVEL_AUX_PAIRS


@dataclass(slots=True)
class LevelHeader:
    regions: List[Tuple[int, int]]
    some_offsets: List[int]
    model_indices: List[int]

    @property
    def tex_and_audio(self) -> Tuple[int, int]:
        return self.regions[0]

    @property
    def collision_data(self) -> Tuple[int, int]:
        return self.regions[1]

    @property
    def model(self) -> Tuple[int, int]:
        return self.regions[2]

    @property
    def something(self) -> List[Tuple[int, int]]:
        return self.regions[len(LEVEL_NAMED_PAIRS) :]


def read_level_header(src: BinaryIO) -> LevelHeader:
    pairs = read_u32s(src, _PAIR_COUNT * 2, "level regions", LevelFormatError)
    offsets = read_u32s(src, LEVEL_RAW_OFFSETS, "level offsets", LevelFormatError)
    indices = read_u16s(
        src, LEVEL_MODEL_INDICES, "level model indices", LevelFormatError
    )
    return LevelHeader(
        regions=[(pairs[i], pairs[i + 1]) for i in range(0, len(pairs), 2)],
        some_offsets=list(offsets),
        model_indices=list(indices),
    )


def pack_level_header(header: LevelHeader) -> bytes:
    flat = [v for pair in header.regions for v in pair]
    return (
        struct.pack(f"<{len(flat)}I", *flat)
        + struct.pack(f"<{LEVEL_RAW_OFFSETS}I", *header.some_offsets)
        + struct.pack(f"<{LEVEL_MODEL_INDICES}H", *header.model_indices)
    )


def vag_header(data_size: int, sample_rate: int) -> bytes:
    header = bytearray(VAG_HEADER_SIZE)
    header[0:4] = VAG_MAGIC
    struct.pack_into(">I", header, 4, VAG_VERSION)
    struct.pack_into(">I", header, 12, data_size)
    struct.pack_into(">I", header, 16, sample_rate)
    return bytes(header)


def tile_header(layout: LevelLayout) -> bytes:
    return struct.pack(
        "<III", layout.tile_width, layout.tile_height, layout.tile_depth
    )


def audio_buffer_sizes(total_length: int, layout: LevelLayout) -> List[int]:
    """Sizes of the audio buffers carved from a texture+audio blob.

    Stops when nothing remains, or right after a short final buffer.
    """
    sizes: List[int] = []
    for i in range(layout.max_audio_buffers):
        remaining = total_length - (layout.audio_start + i * layout.audio_buffer_size)
        if remaining <= 0:
            break
        sizes.append(min(remaining, layout.audio_buffer_size))
        if remaining < layout.audio_buffer_size:
            break
    return sizes


def _emit_textures(
    src: BinaryIO, base: int, layout: LevelLayout, output_dir: Path
) -> List[Path]:
    logger = get_logger()
    src.seek(base)
    if layout.texture_mode == "single":
        tex = output_dir / "tex.bin"
        with tex.open("wb") as out:
            copy_exactly(src, out, layout.texture_size)
        return [tex]

    if layout.tiles_size != layout.texture_size:
        logger.warning(
            "Texture tiles cover %d bytes (%d x %dx%dx%d) but the texture budget is %d",
            layout.tiles_size,
            layout.tile_count,
            layout.tile_width,
            layout.tile_height,
            layout.tile_depth,
            layout.texture_size,
        )
    paths: List[Path] = []
    for i in range(layout.tile_count):
        tile = output_dir / f"tex_tile_{i}.bin"
        with tile.open("wb") as out:
            out.write(tile_header(layout))
            copy_exactly(src, out, layout.tile_size)
        paths.append(tile)
    rest = layout.texture_size - layout.tiles_size
    if rest > 0:
        rest_path = output_dir / "tex_rest.bin"
        with rest_path.open("wb") as out:
            copy_exactly(src, out, rest)
        paths.append(rest_path)
    return paths


def unpack_level(
    level_file: Path, output_dir: Path, layout: LevelLayout | None = None
) -> LevelManifest:
    layout = layout or LevelLayout()
    level_file = Path(level_file)
    output_dir = Path(output_dir)
    logger = get_logger()
    rep = get_reporter()

    with level_file.open("rb") as src:
        header = read_level_header(src)
    ensure_dir(output_dir)

    ta_offset, ta_length = header.tex_and_audio
    if ta_length < layout.audio_start:
        logger.warning(
            "Texture+audio blob is %d bytes, shorter than texture+reverb budgets (%d)",
            ta_length,
            layout.audio_start,
        )
    sizes = audio_buffer_sizes(ta_length, layout)

    buffers: List[Path] = []
    with task("level.audio", "Extract texture and audio", total=len(sizes)) as stats:
        with level_file.open("rb") as src:
            textures = _emit_textures(src, ta_offset, layout, output_dir)

            src.seek(ta_offset + layout.texture_size)
            reverb = output_dir / "a_reverb.bin"
            with reverb.open("wb") as out:
                copy_exactly(src, out, layout.reverb_size)

            for i, size in enumerate(sizes):
                src.seek(ta_offset + layout.audio_start + i * layout.audio_buffer_size)
                buf = output_dir / f"a_buf_{i}.vag"
                with buf.open("wb") as out:
                    out.write(vag_header(size, layout.sample_rate))
                    copy_exactly(src, out, size)
                buffers.append(buf)
                rep.advance("level.audio", current_item=buf.name)
        stats.update(buffers=len(buffers), bytes=sum(sizes))

    blob_specs = [
        ("collision_data.bin", header.collision_data),
        ("model.bin", header.model),
    ] + [(f"s_{i}.bin", region) for i, region in enumerate(header.something)]
    blobs: List[Path] = []
    with task("level.blobs", "Extract level blobs", total=len(blob_specs)) as stats:
        for name, (offset, length) in blob_specs:
            dst = output_dir / name
            copied = copy_region(level_file, offset, length, dst)
            if copied != length:
                logger.warning(
                    "Blob %s truncated: declared %d bytes at %d, read %d",
                    name,
                    length,
                    offset,
                    copied,
                )
            blobs.append(dst)
            rep.advance("level.blobs", current_item=name)
        stats.update(files=len(blobs))

    rep.status(
        "Unpack summary: "
        + f"kind=level source={level_file.name} textures={len(textures)} buffers={len(buffers)} blobs={len(blobs)}"
    )
    return LevelManifest(
        timestamp=now(),
        layout=layout,
        textures=textures,
        reverb=reverb,
        audio_buffers=buffers,
        collision_data=blobs[0],
        model=blobs[1],
        something=blobs[2:],
        regions=list(header.regions),
        some_offsets=header.some_offsets,
        model_indices=header.model_indices,
    )


def _place(image: bytearray, offset: int, data: bytes) -> None:
    end = offset + len(data)
    if end > len(image):
        image.extend(b"\x00" * (end - len(image)))
    image[offset:end] = data


def _texture_payloads(manifest: LevelManifest) -> List[bytes]:
    layout = manifest.layout
    payloads = []
    for i, path in enumerate(manifest.textures):
        data = Path(path).read_bytes()
        if layout.texture_mode == "tiles" and i < layout.tile_count:
            data = data[TILE_HEADER_SIZE:]
        payloads.append(data)
    return payloads


def rebuild_level(manifest: LevelManifest, output_file: Path) -> int:
    """Reassemble a level container from its manifest; returns size.

    Regions are placed at their recorded offsets over a zero-filled image,
    texture+audio parts first so the independent blobs win any overlap.
    """
    output_file = Path(output_file)
    layout = manifest.layout
    rep = get_reporter()
    header = LevelHeader(
        regions=list(manifest.regions),
        some_offsets=list(manifest.some_offsets),
        model_indices=list(manifest.model_indices),
    )
    image = bytearray(pack_level_header(header))
    assert len(image) == LEVEL_HEADER_SIZE

    ta_offset, _ = header.tex_and_audio
    cursor = ta_offset
    for data in _texture_payloads(manifest):
        _place(image, cursor, data)
        cursor += len(data)
    _place(image, ta_offset + layout.texture_size, Path(manifest.reverb).read_bytes())
    for i, path in enumerate(manifest.audio_buffers):
        data = Path(path).read_bytes()[VAG_HEADER_SIZE:]
        _place(image, ta_offset + layout.audio_start + i * layout.audio_buffer_size, data)

    blob_paths = [manifest.collision_data, manifest.model, *manifest.something]
    with task("level.rebuild", "Rebuild level", total=len(blob_paths)) as stats:
        for path, (offset, length) in zip(blob_paths, header.regions[1:]):
            data = Path(path).read_bytes()
            if len(data) != length:
                get_logger().warning(
                    "Blob %s is %d bytes, header declares %d",
                    Path(path).name,
                    len(data),
                    length,
                )
            _place(image, offset, data)
            rep.advance("level.rebuild", current_item=Path(path).name)
        output_file.write_bytes(image)
        stats.update(files=len(blob_paths), bytes=len(image))
    rep.status(
        "Rebuild summary: "
        + f"kind=level output={output_file.name} bytes={len(image)}"
    )
    return len(image)
