from __future__ import annotations

import json
import sys
import time
from typing import Any, Dict
from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

# Status message prefix -> summary_type of the structured summary event
SUMMARY_PREFIXES: Dict[str, str] = {
    "unpack summary": "unpack",
    "rebuild summary": "rebuild",
    "inspect summary": "inspect",
    "diff summary": "diff",
    "convert summary": "convert",
}


def parse_summary_fields(message: str) -> Dict[str, str]:
    """Split ``"X summary: a=1 b=2"`` into ``{"a": "1", "b": "2"}``."""
    _, _, kv_text = message.partition(":")
    pairs: Dict[str, str] = {}
    for token in kv_text.split():
        key, sep, value = token.partition("=")
        if sep:
            pairs[key] = value
    return pairs


class JsonLinesReporter(Reporter):
    """Machine-readable JSON lines reporter."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._tasks: Dict[str, TaskRecord] = {}

    def _emit(self, event: str, **payload: Any) -> None:
        self.stream.write(
            json.dumps({"event": event, **payload}, sort_keys=True) + "\n"
        )

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        self._emit("task_start", id=task_id, name=name, total=total, **meta)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        rec.meta.update(meta)
        self._emit("task_progress", id=task_id, completed=rec.completed, **meta)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.status = status
        rec.end_time = time.time()
        rec.meta.update(final_meta)
        meta = {k: v for k, v in rec.meta.items() if k != "current_item"}
        self._emit(
            "task_end",
            id=task_id,
            status=status.name.lower(),
            completed=rec.completed,
            total=rec.total,
            duration_seconds=rec.duration,
            **meta,
        )

    def _message(self, message: str, level: str, **fields: Any) -> None:
        self._emit("status", message=message, level=level, **fields)

    def status(self, message: str, **fields: Any) -> None:
        lower = message.lower()
        for prefix, summary_type in SUMMARY_PREFIXES.items():
            if lower.startswith(prefix):
                self._emit(
                    "summary",
                    summary_type=summary_type,
                    level="info",
                    raw=message,
                    **parse_summary_fields(message),
                    **fields,
                )
                break
        self._message(message, "info", **fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._message(message, f"verbose{level}", vlevel=level, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._message(message, "error", **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._message(message, "warning", **fields)

    def section(self, title: str) -> None:
        self._emit("section", title=title)
