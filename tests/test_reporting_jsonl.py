import io
import json

import pytest

from wadtool.reporting import (
    JsonLinesReporter,
    PlainReporter,
    SilentReporter,
    TaskStatus,
    get_reporter,
    set_reporter,
    task,
)
from wadtool.reporting.base import format_stats
from wadtool.reporting.jsonl import parse_summary_fields


@pytest.fixture
def stream():
    buf = io.StringIO()
    yield buf
    set_reporter(SilentReporter())


def _lines(buf: io.StringIO):
    return [json.loads(line) for line in buf.getvalue().splitlines()]


def test_parse_summary_fields():
    assert parse_summary_fields("Rebuild summary: kind=wad files=3 junk") == {
        "kind": "wad",
        "files": "3",
    }


def test_summary_status_emits_two_events(stream):
    rep = JsonLinesReporter(stream)
    rep.status("Diff summary: count=2 left=a.wad right=b.wad")
    events = _lines(stream)
    assert [e["event"] for e in events] == ["summary", "status"]
    assert events[0]["summary_type"] == "diff"
    assert events[0]["count"] == "2"
    assert events[1]["level"] == "info"


def test_task_context_reports_stats(stream):
    set_reporter(JsonLinesReporter(stream))
    with task("t", "Work", total=2) as stats:
        get_reporter().advance("t", current_item="a")
        get_reporter().advance("t", current_item="b")
        stats.update(files=2, bytes=10)
    events = _lines(stream)
    assert [e["event"] for e in events] == [
        "task_start",
        "task_progress",
        "task_progress",
        "task_end",
    ]
    end = events[-1]
    assert end["status"] == "success"
    assert end["completed"] == 2
    assert end["files"] == 2 and end["bytes"] == 10
    assert "current_item" not in end


def test_task_context_marks_failure(stream):
    set_reporter(JsonLinesReporter(stream))
    with pytest.raises(ValueError):
        with task("t", "Work"):
            raise ValueError("boom")
    assert _lines(stream)[-1]["status"] == TaskStatus.FAILED.name.lower()


def test_plain_reporter_completion_line(stream):
    rep = PlainReporter(stream, use_color=False)
    rep.start_task("t", "Extract", total=1)
    rep.advance("t", current_item="0.bin")
    rep.end_task("t", files=1, bytes=4)
    rep.warning("careful")
    lines = stream.getvalue().splitlines()
    assert lines[0] == "   · Extract: 0.bin (1/1)"
    assert lines[1].startswith(" ✔ Extract 1/1 (")
    assert lines[1].endswith("[files=1 bytes=4]")
    assert lines[2] == "WARN: careful"


def test_format_stats_orders_known_keys():
    assert format_stats({"bytes": 9, "other": 1, "files": 2}) == " [files=2 bytes=9]"
    assert format_stats({}) == ""
