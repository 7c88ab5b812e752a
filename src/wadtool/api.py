"""High-level API for wadtool.

Every unpack writes its artifacts plus, when ``manifest_path`` is given, the
manifest JSON. Every repack accepts either a manifest object or the path of a
saved manifest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

from .config.loader import load_layout
from .config.models import Layout
from .formats import collision as _collision
from .formats import level as _level
from .formats import triangles as _triangles
from .formats import wad as _wad
from .formats.inspector import inspect_wad as _inspect_wad_impl
from .formats.inspector import validate_wad as _validate_wad_impl
from .formats.errors import E_MANIFEST_KIND, ManifestError
from .logging import get_logger
from .manifest import (
    CollisionManifest,
    LevelManifest,
    Manifest,
    WadManifest,
    load_manifest,
    save_manifest,
)

__all__ = [
    "MANIFEST_NAME",
    "unpack_wad",
    "repack_wad",
    "unpack_level",
    "repack_level",
    "unpack_collision",
    "repack_collision",
    "convert_triangles",
    "inspect_wad",
    "validate_wad",
    "resolve_layout",
]

MANIFEST_NAME = "manifest.json"

ManifestSource = Union[Manifest, str, Path]


def _resolve(source: ManifestSource, kind: str) -> Manifest:
    if isinstance(source, (str, Path)):
        return load_manifest(source, kind)
    if source.kind != kind:
        raise ManifestError(
            code=E_MANIFEST_KIND,
            message=f"Expected a {kind} manifest, found {source.kind}",
            context={"expected": kind, "found": source.kind},
        )
    return source


def _save(manifest: Manifest, manifest_path: Path | None) -> None:
    if manifest_path is None:
        return
    save_manifest(manifest, Path(manifest_path))
    get_logger().info("Wrote manifest: %s", manifest_path)


def resolve_layout(layout: Layout | str | Path | None) -> Layout:
    if isinstance(layout, Layout):
        return layout
    return load_layout(layout)


def unpack_wad(
    wad_file: str | Path,
    output_dir: str | Path,
    manifest_path: str | Path | None = None,
) -> WadManifest:
    manifest = _wad.unpack_wad(Path(wad_file), Path(output_dir))
    _save(manifest, manifest_path)
    return manifest


def repack_wad(
    manifest: ManifestSource,
    output_file: str | Path,
    preserve_offsets: bool = False,
) -> int:
    m = _resolve(manifest, "wad")
    return _wad.rebuild_wad(
        m, Path(output_file), preserve_offsets=preserve_offsets  # type: ignore[arg-type]
    )


def unpack_level(
    level_file: str | Path,
    output_dir: str | Path,
    layout: Layout | str | Path | None = None,
    manifest_path: str | Path | None = None,
) -> LevelManifest:
    cfg = resolve_layout(layout)
    manifest = _level.unpack_level(Path(level_file), Path(output_dir), cfg.level)
    _save(manifest, manifest_path)
    return manifest


def repack_level(manifest: ManifestSource, output_file: str | Path) -> int:
    m = _resolve(manifest, "level")
    return _level.rebuild_level(m, Path(output_file))  # type: ignore[arg-type]


def unpack_collision(
    collision_file: str | Path,
    output_dir: str | Path,
    layout: Layout | str | Path | None = None,
    manifest_path: str | Path | None = None,
) -> CollisionManifest:
    cfg = resolve_layout(layout)
    manifest = _collision.unpack_collision(
        Path(collision_file), Path(output_dir), cfg.collision
    )
    _save(manifest, manifest_path)
    return manifest


def repack_collision(manifest: ManifestSource, output_file: str | Path) -> int:
    m = _resolve(manifest, "collision")
    return _collision.rebuild_collision(m, Path(output_file))  # type: ignore[arg-type]


def convert_triangles(
    source: str | Path, output: str | Path | None = None
) -> Path:
    return _triangles.convert(
        Path(source), Path(output) if output is not None else None
    )


def inspect_wad(path: str | Path) -> dict:
    return _inspect_wad_impl(path)


def validate_wad(path: str | Path) -> list[str]:
    return _validate_wad_impl(_inspect_wad_impl(path))
