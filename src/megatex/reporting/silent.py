from __future__ import annotations

from typing import Any

from .base import Reporter, TaskStatus


class SilentReporter(Reporter):
    """Drops everything (quiet mode, tests)."""

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        pass

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        pass

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        pass

    def status(self, message: str, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        pass

    def warning(self, message: str, **fields: Any) -> None:
        pass

    def section(self, title: str) -> None:
        pass
