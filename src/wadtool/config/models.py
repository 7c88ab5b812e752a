"""Dataclass models for container layout configuration."""

from __future__ import annotations
from dataclasses import dataclass, field

from ..formats.constants import (
    DEFAULT_AUDIO_BUFFER_SIZE,
    DEFAULT_MAX_AUDIO_BUFFERS,
    DEFAULT_REVERB_SIZE,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_TEXTURE_SIZE,
    DEFAULT_TILE_COUNT,
    DEFAULT_TILE_DEPTH,
    DEFAULT_TILE_HEIGHT,
    DEFAULT_TILE_WIDTH,
)

TEXTURE_MODES = ("single", "tiles")


@dataclass(slots=True)
class LevelLayout:
    texture_mode: str = "single"
    texture_size: int = DEFAULT_TEXTURE_SIZE
    tile_width: int = DEFAULT_TILE_WIDTH
    tile_height: int = DEFAULT_TILE_HEIGHT
    tile_depth: int = DEFAULT_TILE_DEPTH
    tile_count: int = DEFAULT_TILE_COUNT
    reverb_size: int = DEFAULT_REVERB_SIZE
    audio_buffer_size: int = DEFAULT_AUDIO_BUFFER_SIZE
    max_audio_buffers: int = DEFAULT_MAX_AUDIO_BUFFERS
    sample_rate: int = DEFAULT_SAMPLE_RATE

    @property
    def tile_size(self) -> int:
        return self.tile_width * self.tile_height * self.tile_depth // 8

    @property
    def tiles_size(self) -> int:
        return self.tile_size * self.tile_count

    @property
    def audio_start(self) -> int:
        """Offset of the first audio buffer within the texture+audio blob."""
        return self.texture_size + self.reverb_size


@dataclass(slots=True)
class CollisionLayout:
    # Added to the section-9 boundary before it joins the section-8 sort
    section9_bias: int = 0


@dataclass(slots=True)
class Layout:
    level: LevelLayout = field(default_factory=LevelLayout)
    collision: CollisionLayout = field(default_factory=CollisionLayout)


__all__ = ["TEXTURE_MODES", "LevelLayout", "CollisionLayout", "Layout"]
