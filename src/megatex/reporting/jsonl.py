from __future__ import annotations

import json
import sys
from typing import Any, Dict
from .base import Reporter, TaskStatus, TaskRecord, get_verbosity

# "<Kind> summary: k=v k=v" status lines become structured summary events.
SUMMARY_TYPES = {
    "atlas summary": "atlas",
    "pack summary": "pack",
    "unpack summary": "unpack",
}


def parse_summary(message: str) -> tuple[str, Dict[str, str]] | None:
    lower = message.lower()
    for prefix, stype in SUMMARY_TYPES.items():
        if lower.startswith(prefix):
            _, _, kv_text = message.partition(":")
            pairs = {}
            for token in kv_text.split():
                if "=" in token:
                    k, v = token.split("=", 1)
                    pairs[k] = v
            return stype, pairs
    return None


class JsonLinesReporter(Reporter):
    """Machine-readable JSON lines reporter."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr
        self._tasks: Dict[str, TaskRecord] = {}

    def _emit(self, obj: dict) -> None:
        self.stream.write(json.dumps(obj, sort_keys=True, default=str) + "\n")

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
        self._emit(
            {
                "event": "task_start",
                "id": task_id,
                "name": name,
                "total": total,
                **meta,
            }
        )

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if not rec:
            return
        rec.completed += step
        if get_verbosity() < 2:
            return
        self._emit(
            {
                "event": "task_progress",
                "id": task_id,
                "completed": rec.completed,
                **meta,
            }
        )

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
        self._emit(
            {
                "event": "task_end",
                "id": task_id,
                "status": status.name.lower(),
                "completed": rec.completed,
                "total": rec.total,
                "duration_seconds": rec.duration,
                **rec.meta,
            }
        )

    def _message(self, message: str, level: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": level, **fields}
        )

    def status(self, message: str, **fields: Any) -> None:
        summary = parse_summary(message)
        if summary is not None:
            stype, pairs = summary
            self._emit(
                {
                    "event": "summary",
                    "summary_type": stype,
                    "raw": message,
                    **pairs,
                    **fields,
                }
            )
        self._message(message, "info", **fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._message(message, f"verbose{level}", vlevel=level, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._message(message, "error", **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._message(message, "warning", **fields)

    def section(self, title: str) -> None:
        self._emit({"event": "section", "title": title})
