"""Manifest records produced by every unpack and consumed by its rebuild.

A manifest is the only state that survives between an unpack and the
matching repack. It records:

- when the unpack ran (local time with UTC offset)
- the artifact paths written, in the order the rebuild needs them
- the raw header scalars required to reconstruct the container

Persistence is JSON (indented, sorted keys, trailing newline). Paths are
stored exactly as they were written; scalars are raw header values and are
never reinterpreted on load.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
import json
from typing import Any, Union

from .config.models import LevelLayout
from .formats.errors import E_MANIFEST_KIND, ManifestError, manifest_error

__all__ = [
    "MANIFEST_VERSION",
    "now",
    "WadManifest",
    "SectionRecord",
    "CollisionManifest",
    "LevelManifest",
    "Manifest",
    "manifest_to_dict",
    "manifest_from_dict",
    "save_manifest",
    "load_manifest",
]

MANIFEST_VERSION = 1


def now() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True)
class WadManifest:
    timestamp: datetime
    files: list[Path] = field(default_factory=list)
    # Original (offset, length) directory entries, index-aligned with files
    entries: list[tuple[int, int]] = field(default_factory=list)

    kind = "wad"


@dataclass(slots=True)
class SectionRecord:
    name: str
    offset: int
    fields: list[int] = field(default_factory=list)
    length: int = 0
    path: Path | None = None


@dataclass(slots=True)
class CollisionManifest:
    timestamp: datetime
    source_size: int = 0
    sections: list[SectionRecord] = field(default_factory=list)

    kind = "collision"

    def section(self, name: str) -> SectionRecord | None:
        for rec in self.sections:
            if rec.name == name:
                return rec
        return None


@dataclass(slots=True)
class LevelManifest:
    timestamp: datetime
    layout: LevelLayout
    textures: list[Path]
    reverb: Path
    audio_buffers: list[Path]
    collision_data: Path
    model: Path
    something: list[Path]
    # 8 raw (offset, length) header pairs: tex_and_audio, collision, model, s_0..s_4
    regions: list[tuple[int, int]]
    some_offsets: list[int]
    model_indices: list[int]

    kind = "level"


Manifest = Union[WadManifest, CollisionManifest, LevelManifest]


def _path(p: Path | None) -> str | None:
    return None if p is None else str(p)


def manifest_to_dict(manifest: Manifest) -> dict[str, Any]:
    d: dict[str, Any] = {
        "kind": manifest.kind,
        "version": MANIFEST_VERSION,
        "timestamp": manifest.timestamp.isoformat(),
    }
    if isinstance(manifest, WadManifest):
        d["files"] = [_path(p) for p in manifest.files]
        d["entries"] = [
            {"offset": o, "length": n} for o, n in manifest.entries
        ]
    elif isinstance(manifest, CollisionManifest):
        d["source_size"] = manifest.source_size
        d["sections"] = [
            {
                "name": s.name,
                "offset": s.offset,
                "fields": list(s.fields),
                "length": s.length,
                "path": _path(s.path),
            }
            for s in manifest.sections
        ]
    elif isinstance(manifest, LevelManifest):
        d.update(
            {
                "layout": asdict(manifest.layout),
                "textures": [_path(p) for p in manifest.textures],
                "reverb": _path(manifest.reverb),
                "audio_buffers": [_path(p) for p in manifest.audio_buffers],
                "collision_data": _path(manifest.collision_data),
                "model": _path(manifest.model),
                "something": [_path(p) for p in manifest.something],
                "regions": [
                    {"offset": o, "length": n} for o, n in manifest.regions
                ],
                "some_offsets": list(manifest.some_offsets),
                "model_indices": list(manifest.model_indices),
            }
        )
    else:  # pragma: no cover
        raise TypeError(f"Unsupported manifest type {type(manifest)!r}")
    return d


def _require(data: dict[str, Any], key: str, typ: type | tuple[type, ...]):
    if key not in data:
        raise manifest_error(f"Missing manifest field '{key}'", {"field": key})
    value = data[key]
    if not isinstance(value, typ) or isinstance(value, bool):
        raise manifest_error(
            f"Manifest field '{key}' has type {type(value).__name__}",
            {"field": key},
        )
    return value


def _paths(data: dict[str, Any], key: str) -> list[Path]:
    items = _require(data, key, list)
    if not all(isinstance(p, str) for p in items):
        raise manifest_error(
            f"Manifest field '{key}' must list paths", {"field": key}
        )
    return [Path(p) for p in items]


def _pairs(data: dict[str, Any], key: str) -> list[tuple[int, int]]:
    out: list[tuple[int, int]] = []
    for i, item in enumerate(_require(data, key, list)):
        if not isinstance(item, dict):
            raise manifest_error(
                f"Manifest field '{key}[{i}]' must be an object",
                {"field": key, "index": i},
            )
        out.append(
            (_require(item, "offset", int), _require(item, "length", int))
        )
    return out


def _ints(data: dict[str, Any], key: str) -> list[int]:
    items = _require(data, key, list)
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in items):
        raise manifest_error(
            f"Manifest field '{key}' must list integers", {"field": key}
        )
    return list(items)


def manifest_from_dict(
    data: dict[str, Any], kind: str | None = None
) -> Manifest:
    found = _require(data, "kind", str)
    if kind is not None and found != kind:
        raise ManifestError(
            code=E_MANIFEST_KIND,
            message=f"Expected a {kind} manifest, found {found}",
            context={"expected": kind, "found": found},
        )
    try:
        timestamp = datetime.fromisoformat(_require(data, "timestamp", str))
    except ValueError as e:
        raise manifest_error(f"Invalid manifest timestamp: {e}") from e

    if found == "wad":
        files = _paths(data, "files")
        entries = _pairs(data, "entries") if "entries" in data else []
        return WadManifest(timestamp=timestamp, files=files, entries=entries)
    if found == "collision":
        sections = []
        for item in _require(data, "sections", list):
            if not isinstance(item, dict):
                raise manifest_error("Collision section must be an object")
            raw_path = item.get("path")
            if raw_path is not None and not isinstance(raw_path, str):
                raise manifest_error(
                    "Collision section path must be a string or null",
                    {"section": item.get("name")},
                )
            sections.append(
                SectionRecord(
                    name=_require(item, "name", str),
                    offset=_require(item, "offset", int),
                    fields=_ints(item, "fields"),
                    length=_require(item, "length", int),
                    path=None if raw_path is None else Path(raw_path),
                )
            )
        return CollisionManifest(
            timestamp=timestamp,
            source_size=_require(data, "source_size", int),
            sections=sections,
        )
    if found == "level":
        layout_raw = _require(data, "layout", dict)
        try:
            layout = LevelLayout(**layout_raw)
        except TypeError as e:
            raise manifest_error(f"Invalid level layout: {e}") from e
        return LevelManifest(
            timestamp=timestamp,
            layout=layout,
            textures=_paths(data, "textures"),
            reverb=Path(_require(data, "reverb", str)),
            audio_buffers=_paths(data, "audio_buffers"),
            collision_data=Path(_require(data, "collision_data", str)),
            model=Path(_require(data, "model", str)),
            something=_paths(data, "something"),
            regions=_pairs(data, "regions"),
            some_offsets=_ints(data, "some_offsets"),
            model_indices=_ints(data, "model_indices"),
        )
    raise ManifestError(
        code=E_MANIFEST_KIND,
        message=f"Unknown manifest kind '{found}'",
        context={"found": found},
    )


def save_manifest(manifest: Manifest, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(manifest_to_dict(manifest), f, indent=2, sort_keys=True)
        f.write("\n")
    return output_path


def load_manifest(path: str | Path, kind: str | None = None) -> Manifest:
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise manifest_error("Root of manifest must be an object")
    return manifest_from_dict(data, kind)
