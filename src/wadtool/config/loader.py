"""Layout configuration loading utilities (JSON/YAML)."""

from __future__ import annotations
from pathlib import Path
from typing import Any
import json

import yaml

from ..formats.errors import E_CONFIG_VALUE, ConfigError
from .models import CollisionLayout, Layout, LevelLayout
from .validator import validate_layout


def load_layout(path: str | Path | None) -> Layout:
    if path is None:
        return Layout()
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigError(
            code=E_CONFIG_VALUE,
            message="Root of layout configuration must be an object",
            context={"path": str(p)},
        )
    return layout_from_dict(data)


def layout_from_dict(data: dict[str, Any]) -> Layout:
    errors = validate_layout(data)
    if errors:
        raise ConfigError(
            code=E_CONFIG_VALUE,
            message="Layout validation failed: "
            + "; ".join(f"{e.code}:{e.path}:{e.message}" for e in errors),
            context={"errors": [e.to_dict() for e in errors]},
        )
    return Layout(
        level=LevelLayout(**(data.get("level") or {})),
        collision=CollisionLayout(**(data.get("collision") or {})),
    )


__all__ = ["load_layout", "layout_from_dict"]
