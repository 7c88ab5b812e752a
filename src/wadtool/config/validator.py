"""Layout configuration validation.

Returns a list of ValidationErrorRecord; empty list means success. Tile
geometry that disagrees with the texture budget is not an error here; the
level parser warns about it when it emits the tiles.
"""

from __future__ import annotations
from typing import Any, Dict, List

from ..formats.constants import TILE_DEPTHS
from .models import TEXTURE_MODES

_LEVEL_INT_KEYS = (
    "texture_size",
    "tile_width",
    "tile_height",
    "tile_depth",
    "tile_count",
    "reverb_size",
    "audio_buffer_size",
    "max_audio_buffers",
    "sample_rate",
)
_POSITIVE_KEYS = (
    "tile_width",
    "tile_height",
    "tile_count",
    "audio_buffer_size",
    "sample_rate",
)
_SECTION9_BIASES = (0, -4)


class ValidationErrorRecord:
    def __init__(self, code: str, message: str, path: str = "") -> None:
        self.code = code
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "path": self.path}

    def __repr__(self) -> str:  # convenience for tests
        return f"ValidationErrorRecord(code={self.code}, path={self.path}, message={self.message})"


def _err(
    errors: List[ValidationErrorRecord], code: str, message: str, path: str
):
    errors.append(ValidationErrorRecord(code, message, path))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _level_phase(level: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    mode = level.get("texture_mode", "single")
    if mode not in TEXTURE_MODES:
        _err(
            errors,
            "E_ENUM",
            f"texture_mode must be one of {list(TEXTURE_MODES)}",
            "level.texture_mode",
        )
    for key in _LEVEL_INT_KEYS:
        if key not in level:
            continue
        value = level[key]
        path = f"level.{key}"
        if not _is_int(value):
            _err(errors, "E_TYPE", f"'{key}' must be an integer", path)
        elif value < 0:
            _err(errors, "E_RANGE", f"'{key}' must not be negative", path)
        elif key in _POSITIVE_KEYS and value == 0:
            _err(errors, "E_RANGE", f"'{key}' must be positive", path)
    depth = level.get("tile_depth")
    if _is_int(depth) and depth not in TILE_DEPTHS:
        _err(
            errors,
            "E_RANGE",
            f"tile_depth must be one of {list(TILE_DEPTHS)}",
            "level.tile_depth",
        )
    unknown = sorted(set(level) - set(_LEVEL_INT_KEYS) - {"texture_mode"})
    for key in unknown:
        _err(errors, "E_FIELD", f"Unknown level key '{key}'", f"level.{key}")
    return errors


def _collision_phase(collision: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    bias = collision.get("section9_bias", 0)
    if not _is_int(bias) or bias not in _SECTION9_BIASES:
        _err(
            errors,
            "E_RANGE",
            f"section9_bias must be one of {list(_SECTION9_BIASES)}",
            "collision.section9_bias",
        )
    for key in sorted(set(collision) - {"section9_bias"}):
        _err(
            errors,
            "E_FIELD",
            f"Unknown collision key '{key}'",
            f"collision.{key}",
        )
    return errors


def validate_layout(data: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    for key in ("level", "collision"):
        if key in data and not isinstance(data[key], dict):
            _err(errors, "E_TYPE", f"'{key}' must be an object", key)
    for key in sorted(set(data) - {"level", "collision"}):
        _err(errors, "E_FIELD", f"Unknown top-level key '{key}'", key)
    if errors:
        return errors
    errors.extend(_level_phase(data.get("level", {}) or {}))
    errors.extend(_collision_phase(data.get("collision", {}) or {}))
    return errors


__all__ = ["ValidationErrorRecord", "validate_layout"]
