"""Binary layout constants shared by the container codecs."""

from __future__ import annotations

# Archive directory ---------------------------------------------------------
WAD_MAX_ENTRIES = 256
WAD_ENTRY_SIZE = 8  # u32 offset + u32 length
WAD_DIRECTORY_SIZE = WAD_MAX_ENTRIES * WAD_ENTRY_SIZE  # 2048

# Copy primitive ------------------------------------------------------------
COPY_CHUNK_SIZE = 1024
# Oversized length meaning "copy to end of file"
COPY_TO_EOF = 999_999_999

# Collision container -------------------------------------------------------
COLLISION_RECORD_STRIDE = 28
COLLISION_OFFSET_STRIDE = 4
COLLISION_VEC3_SIZE = 12
COLLISION_SECTION_13_SIZE = 32
COLLISION_SUBTABLE_SLOTS = 8
COLLISION_SUBTABLE_FIELDS = 10

# Level container -----------------------------------------------------------
LEVEL_NAMED_PAIRS = ("tex_and_audio", "collision_data", "model")
LEVEL_AUX_PAIRS = 5
LEVEL_RAW_OFFSETS = 64
LEVEL_MODEL_INDICES = 64
LEVEL_HEADER_SIZE = (
    (len(LEVEL_NAMED_PAIRS) + LEVEL_AUX_PAIRS) * 8
    + LEVEL_RAW_OFFSETS * 4
    + LEVEL_MODEL_INDICES * 2
)  # 448

KIB = 1024
DEFAULT_TEXTURE_SIZE = 512 * KIB
DEFAULT_TILE_WIDTH = 512
DEFAULT_TILE_HEIGHT = 256
DEFAULT_TILE_DEPTH = 16
DEFAULT_TILE_COUNT = 2
DEFAULT_REVERB_SIZE = 24 * KIB
DEFAULT_AUDIO_BUFFER_SIZE = 64 * KIB
DEFAULT_MAX_AUDIO_BUFFERS = 8
DEFAULT_SAMPLE_RATE = 11025
TILE_HEADER_SIZE = 12  # u32 width, height, depth
TILE_DEPTHS = (4, 8, 16, 24)

VAG_MAGIC = b"VAGp"
VAG_VERSION = 0x20
VAG_HEADER_SIZE = 48

# Triangle codec ------------------------------------------------------------
TRIANGLE_RECORD_SIZE = 12
FIXED_POINT_ONE = 4096.0

__all__ = [
    "WAD_MAX_ENTRIES",
    "WAD_ENTRY_SIZE",
    "WAD_DIRECTORY_SIZE",
    "COPY_CHUNK_SIZE",
    "COPY_TO_EOF",
    "COLLISION_RECORD_STRIDE",
    "COLLISION_OFFSET_STRIDE",
    "COLLISION_VEC3_SIZE",
    "COLLISION_SECTION_13_SIZE",
    "COLLISION_SUBTABLE_SLOTS",
    "COLLISION_SUBTABLE_FIELDS",
    "LEVEL_NAMED_PAIRS",
    "LEVEL_AUX_PAIRS",
    "LEVEL_RAW_OFFSETS",
    "LEVEL_MODEL_INDICES",
    "LEVEL_HEADER_SIZE",
    "KIB",
    "DEFAULT_TEXTURE_SIZE",
    "DEFAULT_TILE_WIDTH",
    "DEFAULT_TILE_HEIGHT",
    "DEFAULT_TILE_DEPTH",
    "DEFAULT_TILE_COUNT",
    "DEFAULT_REVERB_SIZE",
    "DEFAULT_AUDIO_BUFFER_SIZE",
    "DEFAULT_MAX_AUDIO_BUFFERS",
    "DEFAULT_SAMPLE_RATE",
    "TILE_HEADER_SIZE",
    "TILE_DEPTHS",
    "VAG_MAGIC",
    "VAG_VERSION",
    "VAG_HEADER_SIZE",
    "TRIANGLE_RECORD_SIZE",
    "FIXED_POINT_ONE",
]
