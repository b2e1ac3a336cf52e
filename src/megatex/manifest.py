"""Pack report: optional JSON record describing one compiled megatexture.

Only written when requested (``pack --emit-report``). Lists which squares
were resolved from the backup archive so an operator can judge how stale
the composite is.
"""

from __future__ import annotations

from pathlib import Path
import json
from typing import Any

from .atlas.models import Atlas
from .constants import REPORT_VERSION
from .packing.compiler import CompileResult

__all__ = ["report_dict", "write_report"]


def report_dict(
    atlas: Atlas,
    result: CompileResult,
    *,
    output_path: Path | None = None,
    file_sha256: str | None = None,
) -> dict[str, Any]:
    width, height = result.image.dimensions()
    return {
        "version": REPORT_VERSION,
        "pack_name": atlas.pack_name,
        "output": output_path.name if output_path is not None else None,
        "side_length": atlas.side_length,
        "squares": result.total,
        "width": width,
        "height": height,
        "fallbacks": list(result.fallbacks),
        "fail_rate": result.fail_rate,
        "max_fail_rate": result.max_fail_rate,
        "sha256": file_sha256,
    }


def write_report(
    atlas: Atlas,
    result: CompileResult,
    report_path: Path,
    *,
    output_path: Path | None = None,
    file_sha256: str | None = None,
) -> Path:
    report_path.parent.mkdir(parents=True, exist_ok=True)
    data = report_dict(
        atlas, result, output_path=output_path, file_sha256=file_sha256
    )
    with report_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.write("\n")
    return report_path
