"""Reported tasks finish with a status even when the work raises."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from archive_helper import block, corrupt_entry, tile_entries, write_pack
from megatex.atlas.builder import assign_grid
from megatex.errors import ArchiveError, NotFoundError
from megatex.imaging.tile import TileImage
from megatex.packing.archive import open_archive
from megatex.packing.compiler import compile_megatexture
from megatex.packing.unpacker import unpack_megatexture
from megatex.reporting import base
from megatex.reporting.base import Reporter, TaskStatus, task
from megatex.reporting.jsonl import parse_summary

NAMES = [block(f"r{i}.png") for i in range(4)]


class RecordingReporter(Reporter):
    def __init__(self):
        self.ended = {}

    def start_task(self, task_id, name, total=None, **meta):
        pass

    def advance(self, task_id, step=1, **meta):
        pass

    def end_task(self, task_id, status=TaskStatus.SUCCESS, **final_meta):
        self.ended[task_id] = (status, final_meta)

    def status(self, message, **fields):
        pass

    def error(self, message, **fields):
        pass

    def section(self, title):
        pass


@pytest.fixture
def recorder(monkeypatch) -> RecordingReporter:
    rep = RecordingReporter()
    monkeypatch.setattr(base, "_ACTIVE_REPORTER", rep)
    return rep


def test_task_passes_final_meta(recorder: RecordingReporter):
    stats = {}
    with task("t", "Work", total=2, final=stats):
        stats["entries"] = 2
    assert recorder.ended["t"] == (TaskStatus.SUCCESS, {"entries": 2})


def test_task_marks_failure(recorder: RecordingReporter):
    with pytest.raises(ValueError):
        with task("t", "Work"):
            raise ValueError("boom")
    assert recorder.ended["t"][0] is TaskStatus.FAILED


def test_compile_failure_ends_task(tmp_path: Path, recorder: RecordingReporter):
    path = write_pack(tmp_path / "p.zip", tile_entries(NAMES, skip=[NAMES[1]]))
    with open_archive(path) as primary:
        with pytest.raises(NotFoundError):
            compile_megatexture(assign_grid(NAMES), primary)
    status, meta = recorder.ended["compile.p.zip"]
    assert status is TaskStatus.FAILED
    assert meta["fallbacks"] == 0


def test_unpack_template_read_failure_ends_task(
    tmp_path: Path, recorder: RecordingReporter
):
    atlas = assign_grid(NAMES)
    template = write_pack(tmp_path / "tpl.zip", {"pack.mcmeta": b"{}" * 64})
    corrupt_entry(template, "pack.mcmeta")
    with open_archive(template) as tpl:
        with pytest.raises(ArchiveError):
            unpack_megatexture(TileImage.new(32, 32), atlas, tpl, io.BytesIO())
    assert recorder.ended["unpack.cut"][0] is TaskStatus.SUCCESS
    assert recorder.ended["unpack.write"][0] is TaskStatus.FAILED


def test_summary_lines_parse():
    assert parse_summary("Pack summary: file=a.png squares=4") == (
        "pack",
        {"file": "a.png", "squares": "4"},
    )
    assert parse_summary("Report summary: file=a.json") is None
