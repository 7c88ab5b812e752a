from __future__ import annotations

"""Collision container section splitting.

The synthetic container from ``sample_builders.build_collision`` exercises
every rule kind: plain next-offset sections, the 28-byte record section,
the counted offset table, the derived section 2, fixed-size sections, the
section 8 sub-table and the tail.
"""
from pathlib import Path
import struct

import pytest

from sample_builders import build_collision, u32s
from wadtool.config.models import CollisionLayout
from wadtool.formats.collision import (
    COLLISION_RULES,
    SUBTABLE,
    rebuild_collision,
    subtable_regions,
    unpack_collision,
)
from wadtool.formats.errors import SectionLayoutError


def _unpack(tmp_path: Path, data: bytes, **kw):
    src = tmp_path / "collision.bin"
    src.write_bytes(data)
    return unpack_collision(src, tmp_path / "out", **kw)


def test_every_section_payload_is_recovered(tmp_path: Path):
    data, expected = build_collision()
    manifest = _unpack(tmp_path, data)
    recovered = {
        rec.name: rec.path.read_bytes()
        for rec in manifest.sections
        if rec.path is not None
    }
    assert recovered == expected
    assert manifest.source_size == len(data)


def test_section_order_follows_rule_table(tmp_path: Path):
    data, _ = build_collision()
    manifest = _unpack(tmp_path, data)
    names = [rec.name for rec in manifest.sections]
    top_level = [r.name for r in COLLISION_RULES]
    assert [n for n in names if n in top_level] == top_level
    # Sub-regions appear right after the section 8 header, in file order
    i = names.index("section_8")
    assert names[i + 1 : i + 4] == ["section_8_2", "section_8_5", "section_8_0"]


def test_raw_header_fields_are_recorded(tmp_path: Path):
    data, _ = build_collision()
    manifest = _unpack(tmp_path, data)
    sec0 = manifest.section("section_0")
    assert sec0.fields == [24, 0xABCD]
    assert sec0.offset == 0
    assert manifest.section("section_2").fields == []
    sec8 = manifest.section("section_8")
    assert len(sec8.fields) == 10
    assert sec8.path is None and sec8.length == 0


def test_tail_and_artifact_names(tmp_path: Path):
    data, expected = build_collision()
    manifest = _unpack(tmp_path, data)
    assert manifest.section("tail").path.name == "tail.bin"
    assert manifest.section("section_1").path.name == "section_1.dat"
    assert manifest.section("tail").length == len(expected["tail"])


def test_record_section_rounds_down_to_whole_records(tmp_path: Path):
    data, _ = build_collision()
    buf = bytearray(data)
    sec1_start = 8 + 16
    # next_offset 4 + 56 + 5 -> still two 28-byte records
    struct.pack_into("<I", buf, sec1_start + 4, 65)
    manifest = _unpack(tmp_path, bytes(buf))
    assert manifest.section("section_1").length == 56


def test_offset_below_header_size_is_fatal(tmp_path: Path):
    data, _ = build_collision()
    buf = bytearray(data)
    struct.pack_into("<I", buf, 0, 4)  # section 0 next_offset < 8 header bytes
    with pytest.raises(SectionLayoutError) as exc:
        _unpack(tmp_path, bytes(buf))
    assert exc.value.code == "E_LENGTH_UNDERFLOW"
    assert exc.value.context["section"] == "section_0"


def test_derived_section_2_underflow_is_fatal(tmp_path: Path):
    data, _ = build_collision()
    buf = bytearray(data)
    sec1_start = 8 + 16
    struct.pack_into("<I", buf, sec1_start, 10)  # later_offset too small
    with pytest.raises(SectionLayoutError) as exc:
        _unpack(tmp_path, bytes(buf))
    assert exc.value.code == "E_LENGTH_UNDERFLOW"
    assert exc.value.context["section"] == "section_2"


def test_truncated_header_is_fatal(tmp_path: Path):
    with pytest.raises(SectionLayoutError) as exc:
        _unpack(tmp_path, u32s(8))
    assert exc.value.code == "E_TRUNCATED_HEADER"


def test_rebuild_is_byte_identical(tmp_path: Path):
    data, _ = build_collision()
    manifest = _unpack(tmp_path, data)
    out = tmp_path / "rebuilt.bin"
    assert rebuild_collision(manifest, out) == len(data)
    assert out.read_bytes() == data


def test_only_one_subtable_rule():
    assert [r.name for r in COLLISION_RULES if r.kind == SUBTABLE] == [
        "section_8"
    ]


def test_subtable_skips_zero_slots_and_sorts():
    # Slots out of file order, zeros interleaved
    fields = (70, 0, 40, 0, 0, 52, 0, 0, 0x99, 90)
    assert subtable_regions(fields) == [
        ("section_8_2", 40, 12),
        ("section_8_5", 52, 18),
        ("section_8_0", 70, 20),
    ]


def test_subtable_lead_gap_is_kept():
    fields = (48, 0, 0, 0, 0, 0, 0, 0, 0, 60)
    assert subtable_regions(fields) == [
        ("section_8_lead", 40, 8),
        ("section_8_0", 48, 12),
    ]


def test_subtable_all_slots_empty():
    fields = (0,) * 9 + (40,)
    assert subtable_regions(fields) == []


def test_subtable_offset_beyond_section_9_is_fatal():
    fields = (40, 200, 0, 0, 0, 0, 0, 0, 0, 100)
    with pytest.raises(SectionLayoutError) as exc:
        subtable_regions(fields)
    assert exc.value.code == "E_SUBTABLE_ORDER"


def test_subtable_offset_inside_header_is_fatal():
    fields = (12, 0, 0, 0, 0, 0, 0, 0, 0, 100)
    with pytest.raises(SectionLayoutError) as exc:
        subtable_regions(fields)
    assert exc.value.code == "E_LENGTH_UNDERFLOW"


def test_section9_bias_handles_offset_stored_past_boundary(tmp_path: Path):
    data, expected = build_collision(section9_extra=4)
    manifest = _unpack(
        tmp_path, data, layout=CollisionLayout(section9_bias=-4)
    )
    assert manifest.section("section_8_0").path.read_bytes() == expected[
        "section_8_0"
    ]
    assert manifest.section("tail").path.read_bytes() == expected["tail"]
    out = tmp_path / "rebuilt.bin"
    rebuild_collision(manifest, out)
    assert out.read_bytes() == data


def test_empty_subtable_slots_emit_no_artifacts(tmp_path: Path):
    data, expected = build_collision(subtable={3: (0, 16)})
    manifest = _unpack(tmp_path, data)
    sub = [r.name for r in manifest.sections if r.name.startswith("section_8_")]
    assert sub == ["section_8_3"]
    assert not (tmp_path / "out" / "section_8_0.dat").exists()
    assert manifest.section("section_8_3").path.read_bytes() == expected[
        "section_8_3"
    ]
