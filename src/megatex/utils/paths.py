"""Source path expansion (archive files or directories of archives)."""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, List

from ..constants import ARCHIVE_SUFFIX
from ..errors import E_ARCHIVE, ArchiveError

__all__ = ["discover_archives", "expand_sources", "output_for"]


def discover_archives(path: Path) -> List[Path]:
    """``path`` itself if it is a file, else its ``*.zip`` children sorted by name."""
    if path.is_file():
        return [path]
    if path.is_dir():
        return sorted(
            (
                p
                for p in path.iterdir()
                if p.is_file() and p.suffix.lower() == ARCHIVE_SUFFIX
            ),
            key=lambda p: p.name,
        )
    raise ArchiveError(
        code=E_ARCHIVE,
        message=f"Source not found: {path}",
        context={"archive": str(path)},
    )


def expand_sources(paths: Iterable[Path]) -> List[Path]:
    out: List[Path] = []
    for p in paths:
        for found in discover_archives(Path(p)):
            if found not in out:
                out.append(found)
    return out


def output_for(archive: Path, out_dir: Path, suffix: str = ".png") -> Path:
    return out_dir / (archive.stem + suffix)
