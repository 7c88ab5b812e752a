"""End-to-end CLI runs over synthetic containers."""

from __future__ import annotations

from pathlib import Path
import json

import pytest

from sample_builders import build_collision, build_level, build_wad, pattern
from wadtool.cli import main
from wadtool.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _reset_reporter():
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)


def _events(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.startswith("{")]


def test_wad_unpack_then_repack(tmp_path: Path):
    wad = tmp_path / "WAD.WAD"
    payloads = [pattern(10, 1), b"", pattern(300, 2)]
    wad.write_bytes(build_wad(payloads))
    out = tmp_path / "out"

    assert main(["-r", "silent", "wad-unpack", str(wad), str(out)]) == 0
    manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["kind"] == "wad"
    assert [Path(p).name for p in manifest["files"]] == ["0.bin", "1.bin", "2.bin"]

    rebuilt = tmp_path / "NEW.WAD"
    assert main(["-r", "silent", "wad-repack", str(out / "manifest.json"), str(rebuilt)]) == 0
    assert rebuilt.read_bytes() == wad.read_bytes()


def test_wad_repack_preserve_offsets(tmp_path: Path):
    wad = tmp_path / "WAD.WAD"
    wad.write_bytes(build_wad([pattern(3, 1), pattern(4, 2)], offsets=[4096, 2048]))
    out = tmp_path / "out"
    main(["-r", "silent", "wad-unpack", str(wad), str(out)])
    rebuilt = tmp_path / "NEW.WAD"
    code = main(
        [
            "-r",
            "silent",
            "wad-repack",
            "--preserve-offsets",
            str(out / "manifest.json"),
            str(rebuilt),
        ]
    )
    assert code == 0
    assert rebuilt.read_bytes() == wad.read_bytes()


def test_json_reporter_emits_summary(tmp_path: Path, capsys):
    wad = tmp_path / "WAD.WAD"
    wad.write_bytes(build_wad([pattern(10, 1), pattern(20, 2)]))
    assert main(["-r", "json", "wad-unpack", str(wad), str(tmp_path / "out")]) == 0
    events = _events(capsys.readouterr().out)
    summaries = [e for e in events if e["event"] == "summary"]
    assert len(summaries) == 1
    assert summaries[0]["summary_type"] == "unpack"
    assert summaries[0]["kind"] == "wad"
    assert summaries[0]["files"] == "2"
    assert summaries[0]["bytes"] == "30"
    ends = [e for e in events if e["event"] == "task_end"]
    assert ends and all(e["status"] == "success" for e in ends)


def test_collision_round_trip(tmp_path: Path):
    data, _ = build_collision()
    src = tmp_path / "COLL.BIN"
    src.write_bytes(data)
    out = tmp_path / "coll"
    assert main(["-r", "silent", "collision-unpack", str(src), str(out)]) == 0
    assert (out / "section_8_2.dat").exists()
    rebuilt = tmp_path / "COLL2.BIN"
    assert main(["-r", "silent", "collision-repack", str(out / "manifest.json"), str(rebuilt)]) == 0
    assert rebuilt.read_bytes() == data


def test_level_round_trip_with_yaml_layout(tmp_path: Path):
    from sample_builders import SMALL_LAYOUT

    layout_file = tmp_path / "layout.yaml"
    layout_file.write_text(
        "level:\n" + "".join(f"  {k}: {v}\n" for k, v in SMALL_LAYOUT.items()),
        encoding="utf-8",
    )
    data, _ = build_level(50)
    src = tmp_path / "LEVEL.BIN"
    src.write_bytes(data)
    out = tmp_path / "level"
    code = main(
        ["-r", "silent", "level-unpack", str(src), str(out), "--layout", str(layout_file)]
    )
    assert code == 0
    assert sorted(p.name for p in out.glob("a_buf_*.vag")) == ["a_buf_0.vag", "a_buf_1.vag"]
    rebuilt = tmp_path / "LEVEL2.BIN"
    assert main(["-r", "silent", "level-repack", str(out / "manifest.json"), str(rebuilt)]) == 0
    assert rebuilt.read_bytes() == data


def test_obj_command(tmp_path: Path):
    tri = tmp_path / "mesh.tri"
    tri.write_bytes(b"\x00" * 24)
    assert main(["-r", "silent", "obj", str(tri)]) == 0
    text = (tmp_path / "mesh.obj").read_text(encoding="utf-8")
    faces = [line for line in text.splitlines() if line.startswith("f ")]
    assert faces == ["f 1 2 3", "f 4 5 6"]


def test_inspect_json_output(tmp_path: Path, capsys):
    wad = tmp_path / "WAD.WAD"
    wad.write_bytes(build_wad([pattern(10, 1)]))
    assert main(["-r", "silent", "inspect", "--json", str(wad)]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["entry_count"] == 1
    assert report["issues"] == []


def test_inspect_flags_issues(tmp_path: Path):
    wad = tmp_path / "WAD.WAD"
    data = bytearray(build_wad([pattern(10, 1)]))
    data[4:8] = (500).to_bytes(4, "little")
    wad.write_bytes(bytes(data))
    assert main(["-r", "silent", "inspect", str(wad)]) == 1


def test_diff_exit_codes(tmp_path: Path, capsys):
    left = tmp_path / "l.wad"
    right = tmp_path / "r.wad"
    left.write_bytes(build_wad([pattern(10, 1)]))
    right.write_bytes(build_wad([pattern(10, 1)], offsets=[3000]))
    assert main(["-r", "silent", "diff", str(left), str(right)]) == 0
    capsys.readouterr()
    right.write_bytes(build_wad([pattern(10, 2)]))
    assert main(["-r", "silent", "diff", str(left), str(right)]) == 1
    result = json.loads(capsys.readouterr().out)
    assert result["entries"][0]["kind"] == "content"


def test_codec_error_exit_code(tmp_path: Path, capsys):
    bad = tmp_path / "short.bin"
    bad.write_bytes(b"\x01\x00")
    assert main(["collision-unpack", str(bad), str(tmp_path / "out")]) == 2
    assert "E_TRUNCATED_HEADER" in capsys.readouterr().err


def test_manifest_kind_mismatch_exit_code(tmp_path: Path):
    wad = tmp_path / "WAD.WAD"
    wad.write_bytes(build_wad([pattern(4, 1)]))
    out = tmp_path / "out"
    main(["-r", "silent", "wad-unpack", str(wad), str(out)])
    code = main(
        ["-r", "silent", "level-repack", str(out / "manifest.json"), str(tmp_path / "x")]
    )
    assert code == 2
