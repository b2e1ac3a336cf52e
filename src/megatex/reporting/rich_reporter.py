from __future__ import annotations

import os
from typing import Any, Dict, List

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, TaskStatus, format_stats, get_verbosity

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
}


def _transient_from_env() -> bool:
    return os.getenv("MEGATEX_PROGRESS_TRANSIENT", "0").lower() in (
        "1",
        "true",
        "yes",
    )


class RichReporter(Reporter):
    """Progress bars and coloured messages on stderr via rich."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )
        self._transient = _transient_from_env()
        self.progress: Progress | None = None
        self._tasks: Dict[str, TaskRecord] = {}
        self._task_ids: Dict[str, TaskID] = {}
        self._completions: List[str] = []

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.description}", justify="left"),
                BarColumn(bar_width=None),
                MofNCompleteColumn(),
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
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        if total is None:
            # no known size: a header rule instead of a spinner
            self.console.rule(name)
            return
        progress = self._ensure_progress()
        self._task_ids[task_id] = progress.add_task(name, total=total)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if not rec:
            return
        rec.completed += step
        rid = self._task_ids.get(task_id)
        if rid is not None and self.progress is not None:
            self.progress.update(rid, completed=rec.completed)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if not rec:
            return
        rec.finish(status, final_meta)
        rid = self._task_ids.pop(task_id, None)
        if rid is not None and self.progress is not None:
            self.progress.update(rid, completed=rec.completed)
        total_part = f" {rec.completed}/{rec.total}" if rec.total is not None else ""
        line = (
            f"{_STATUS_ICON.get(status, '')} {escape(rec.name)}{total_part}"
            f" ({rec.duration:.2f}s){format_stats(rec.meta)}"
        )
        if self._transient:
            self._completions.append(line)
        else:
            self.console.print(line)
        if not self._task_ids:
            self.flush()

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {escape(message)}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self.console.print(f"[cyan]VERB{level}[/]: {escape(message)}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {escape(message)}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {escape(message)}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        if self.progress is not None:
            try:
                self.progress.stop()
            finally:
                self.progress = None
                if self._completions:
                    self.console.print("\n".join(self._completions))
                    self._completions.clear()
