"""Manifest persistence: JSON shape, reload and field validation."""

from __future__ import annotations

from pathlib import Path
import json

import pytest

from sample_builders import build_collision, build_level, build_wad, pattern, small_layout
from wadtool.formats.collision import unpack_collision
from wadtool.formats.errors import ManifestError
from wadtool.formats.level import unpack_level
from wadtool.formats.wad import unpack_wad
from wadtool.manifest import (
    WadManifest,
    load_manifest,
    manifest_from_dict,
    manifest_to_dict,
    now,
    save_manifest,
)


def test_wad_manifest_json_shape(tmp_path: Path):
    wad = tmp_path / "a.wad"
    wad.write_bytes(build_wad([pattern(3, 1), pattern(5, 2)]))
    manifest = unpack_wad(wad, tmp_path / "out")
    path = save_manifest(manifest, tmp_path / "out" / "manifest.json")
    text = path.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    data = json.loads(text)
    assert data["kind"] == "wad"
    assert data["version"] == 1
    assert data["files"] == [str(p) for p in manifest.files]
    assert data["entries"] == [
        {"length": 3, "offset": 2048},
        {"length": 5, "offset": 2051},
    ]


def test_timestamp_keeps_utc_offset(tmp_path: Path):
    manifest = WadManifest(timestamp=now(), files=[])
    data = manifest_to_dict(manifest)
    loaded = manifest_from_dict(data)
    assert loaded.timestamp == manifest.timestamp
    assert loaded.timestamp.utcoffset() is not None


def test_wad_manifest_reload(tmp_path: Path):
    wad = tmp_path / "a.wad"
    wad.write_bytes(build_wad([pattern(3, 1)]))
    manifest = unpack_wad(wad, tmp_path / "out")
    path = save_manifest(manifest, tmp_path / "m.json")
    assert load_manifest(path, "wad") == manifest


def test_collision_manifest_reload(tmp_path: Path):
    data, _ = build_collision()
    src = tmp_path / "c.bin"
    src.write_bytes(data)
    manifest = unpack_collision(src, tmp_path / "out")
    path = save_manifest(manifest, tmp_path / "m.json")
    loaded = load_manifest(path)
    assert loaded == manifest
    assert loaded.section("section_8").path is None


def test_level_manifest_reload(tmp_path: Path):
    layout = small_layout(texture_mode="tiles")
    data, _ = build_level(40, layout)
    src = tmp_path / "level.bin"
    src.write_bytes(data)
    manifest = unpack_level(src, tmp_path / "out", layout)
    path = save_manifest(manifest, tmp_path / "m.json")
    loaded = load_manifest(path, "level")
    assert loaded == manifest
    assert loaded.layout.texture_mode == "tiles"
    assert loaded.regions == manifest.regions


def test_kind_mismatch_is_rejected(tmp_path: Path):
    path = save_manifest(WadManifest(timestamp=now()), tmp_path / "m.json")
    with pytest.raises(ManifestError) as exc:
        load_manifest(path, "level")
    assert exc.value.code == "E_MANIFEST_KIND"
    assert exc.value.context == {"expected": "level", "found": "wad"}


def test_unknown_kind_is_rejected():
    with pytest.raises(ManifestError) as exc:
        manifest_from_dict({"kind": "pak", "timestamp": now().isoformat()})
    assert exc.value.code == "E_MANIFEST_KIND"


def test_missing_field_is_reported():
    with pytest.raises(ManifestError) as exc:
        manifest_from_dict({"kind": "wad", "timestamp": now().isoformat()})
    assert exc.value.code == "E_MANIFEST_FIELD"
    assert exc.value.context["field"] == "files"


def test_wrong_field_type_is_reported():
    with pytest.raises(ManifestError) as exc:
        manifest_from_dict(
            {"kind": "wad", "timestamp": now().isoformat(), "files": [1, 2]}
        )
    assert exc.value.code == "E_MANIFEST_FIELD"


def test_bad_timestamp_is_reported():
    with pytest.raises(ManifestError) as exc:
        manifest_from_dict({"kind": "wad", "timestamp": "yesterday", "files": []})
    assert exc.value.code == "E_MANIFEST_FIELD"


def test_non_object_root_is_rejected(tmp_path: Path):
    path = tmp_path / "m.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ManifestError):
        load_manifest(path)
