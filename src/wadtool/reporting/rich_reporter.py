from __future__ import annotations

import os
import time
from typing import Any, Dict, List

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import (
    Reporter,
    TaskRecord,
    TaskStatus,
    format_stats,
    get_verbosity,
)

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
    TaskStatus.SKIPPED: "[yellow]→[/]",
}


class RichReporter(Reporter):
    """Progress bars and colored messages on stderr via ``rich``.

    Tasks started without a total render as a rule instead of a bar. Set
    ``WADTOOL_PROGRESS_TRANSIENT=1`` to clear bars when they finish and print
    the completion lines once all tasks are done.
    """

    supports_progress = True

    def __init__(self, console: Console | None = None):
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )
        self._transient = os.getenv(
            "WADTOOL_PROGRESS_TRANSIENT", "0"
        ).lower() in ("1", "true", "yes")
        self.progress: Progress | None = None
        self._tasks: Dict[str, TaskRecord] = {}
        self._bars: Dict[str, TaskID] = {}
        self._deferred: List[str] = []

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.description}"),
                BarColumn(bar_width=None),
                TextColumn("{task.completed}/{task.total}"),
                TextColumn("[dim]{task.fields[item]}"),
                TimeElapsedColumn(),
                transient=self._transient,
                console=self.console,
                expand=True,
            )
            self.progress.start()
        return self.progress

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        if total is None:
            self.console.rule(name)
            return
        progress = self._ensure_progress()
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        self._bars[task_id] = progress.add_task(name, total=total, item="")

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        bar = self._bars.get(task_id)
        if rec is None or bar is None or self.progress is None:
            return
        rec.completed += step
        rec.meta.update(meta)
        self.progress.update(
            bar,
            completed=rec.completed,
            item=str(meta.get("current_item", "")),
        )

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        bar = self._bars.pop(task_id, None)
        if rec is None:
            return
        rec.status = status
        rec.end_time = time.time()
        rec.meta.update(final_meta)
        if bar is not None and self.progress is not None:
            self.progress.update(bar, item="")
        line = (
            f"{_STATUS_ICON.get(status, '')} {rec.name}"
            f" {rec.completed}/{rec.total} ({rec.duration:.2f}s)"
            f"{format_stats(rec.meta)}"
        )
        if self._transient:
            self._deferred.append(line)
        else:
            self.console.print(line)
        if not self._tasks:
            self.flush()

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {message}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self.console.print(f"[cyan]VERB{level}[/]: {message}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {message}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {message}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        if self.progress is not None:
            try:
                self.progress.stop()
            finally:
                self.progress = None
                self._bars.clear()
        if self._deferred:
            self.console.print("\n".join(self._deferred))
            self._deferred.clear()
