"""Reporter protocol and the process-wide active reporter.

Long loops (archive scans, square compilation) are reported as tasks with
a known total; one-off messages go through ``status``/``warning``/``error``.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "STAT_KEYS",
    "format_stats",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "task",
]

# Task meta keys echoed on task completion lines.
STAT_KEYS = ("entries", "squares", "fallbacks", "bytes")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return (self.end_time - self.start_time) if self.end_time else 0.0

    def finish(self, status: TaskStatus, meta: Dict[str, Any]) -> None:
        self.status = status
        self.end_time = time.time()
        self.meta.update(meta)


def format_stats(meta: Dict[str, Any]) -> str:
    stats = [f"{k}={meta[k]}" for k in STAT_KEYS if k in meta]
    return f" [{' '.join(stats)}]" if stats else ""


_VERBOSITY: int = 0


def set_verbosity(level: int) -> None:
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


class Reporter:
    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        raise NotImplementedError

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        raise NotImplementedError

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        raise NotImplementedError

    def status(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        # gated by global verbosity; ignored unless overridden
        pass

    def error(self, message: str, **fields: Any) -> None:
        raise NotImplementedError

    def warning(self, message: str, **fields: Any) -> None:
        self.status(message, **fields)

    def section(self, title: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass


_ACTIVE_REPORTER: Reporter | None = None


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE_REPORTER
    _ACTIVE_REPORTER = rep


def get_reporter() -> Reporter:
    global _ACTIVE_REPORTER
    if _ACTIVE_REPORTER is None:
        from .plain import PlainReporter  # local import to avoid cycle

        _ACTIVE_REPORTER = PlainReporter(stream=sys.stderr)
    return _ACTIVE_REPORTER


@contextmanager
def task(
    task_id: str,
    name: str,
    total: int | None = None,
    *,
    final: Dict[str, Any] | None = None,
    **meta: Any,
) -> Iterator[Reporter]:
    """Run a block as a reported task; marks it FAILED if the block raises.

    ``final`` may be filled by the block; its items are passed to
    ``end_task`` on success and on failure.
    """
    rep = get_reporter()
    if final is None:
        final = {}
    rep.start_task(task_id, name, total, **meta)
    try:
        yield rep
    except Exception:
        rep.end_task(task_id, TaskStatus.FAILED, **final)
        raise
    else:
        rep.end_task(task_id, TaskStatus.SUCCESS, **final)
