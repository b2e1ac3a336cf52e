"""Megatexture compilation with backup fallback and a failure budget.

For each atlas square, in atlas order:

1. load the tile from the primary archive (exact name, decode, require
   ``TILE_EDGE`` x ``TILE_EDGE``);
2. on any per-tile failure record the name and load it from the backup
   archive instead; a backup failure is fatal (:class:`BackupLoadError`);
3. blit the tile at ``(x * TILE_EDGE, y * TILE_EDGE)``.

Afterwards the share of squares that came from the backup must not exceed
``max_fail_rate``; otherwise the whole composite is rejected with
:class:`ExcessiveFallbackError`.

Without a distinct backup archive there is no second chance: the first
per-tile failure propagates as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..atlas.models import Atlas, AtlasSquare
from ..constants import MAX_FAIL_RATE, TILE_EDGE
from ..errors import (
    E_BACKUP_LOAD,
    ArchiveError,
    BackupLoadError,
    DecodeError,
    DimensionMismatchError,
    MegatexError,
    NotFoundError,
    dimension_error,
    fallback_budget_error,
)
from ..imaging import codec
from ..imaging.tile import TileImage
from ..logging import get_logger
from ..reporting import task
from .archive import ArchiveSource

__all__ = [
    "TILE_FAILURES",
    "CompileResult",
    "MegatextureCompiler",
    "load_square",
    "compile_megatexture",
]

# Per-tile failures that the backup archive may recover from.
TILE_FAILURES = (NotFoundError, DecodeError, DimensionMismatchError, ArchiveError)


@dataclass(slots=True)
class CompileResult:
    image: TileImage
    total: int
    fallbacks: List[str] = field(default_factory=list)
    max_fail_rate: float = MAX_FAIL_RATE

    @property
    def fail_rate(self) -> float:
        return len(self.fallbacks) / self.total if self.total else 0.0


def load_square(archive: ArchiveSource, square: AtlasSquare) -> TileImage:
    """Read, decode and size-check one square's tile from ``archive``."""
    try:
        tile = codec.decode(archive.read(square.name))
    except MegatexError as e:
        raise e.with_context(entry=square.name, archive=archive.label)
    width, height = tile.dimensions()
    if (width, height) != (TILE_EDGE, TILE_EDGE):
        raise dimension_error(
            f"Textures must be {TILE_EDGE}x{TILE_EDGE}; "
            f"{square.name} is {width}x{height}",
            {"entry": square.name, "archive": archive.label},
        )
    return tile


class MegatextureCompiler:
    def __init__(
        self,
        primary: ArchiveSource,
        backup: Optional[ArchiveSource] = None,
        max_fail_rate: float = MAX_FAIL_RATE,
    ):
        self.primary = primary
        # Same archive as backup would only retry the same bytes.
        self.backup = None if primary.same_source(backup) else backup
        self.max_fail_rate = max_fail_rate if self.backup is not None else 0.0

    def _resolve(self, square: AtlasSquare, fallbacks: List[str]) -> TileImage:
        try:
            return load_square(self.primary, square)
        except TILE_FAILURES as primary_err:
            if self.backup is None:
                raise primary_err.with_context(phase="primary")
            fallbacks.append(square.name)
            get_logger().warning(
                "Falling back to %s for %s: %s",
                self.backup.label,
                square.name,
                primary_err.message,
            )
            try:
                return load_square(self.backup, square)
            except TILE_FAILURES as backup_err:
                raise BackupLoadError(
                    code=E_BACKUP_LOAD,
                    message=(
                        f"{square.name} could not be loaded from primary "
                        f"{self.primary.label} or backup {self.backup.label}"
                    ),
                    context={
                        "entry": square.name,
                        "phase": "backup",
                        "primary_error": primary_err.to_dict(),
                        "backup_error": backup_err.to_dict(),
                    },
                ) from backup_err

    def compile(self, atlas: Atlas) -> CompileResult:
        edge = TILE_EDGE * atlas.side_length
        canvas = TileImage.new(edge, edge)
        fallbacks: List[str] = []
        task_id = f"compile.{self.primary.label}"
        stats: dict = {"fallbacks": 0}
        with task(
            task_id,
            f"Compile {self.primary.label}",
            total=len(atlas.squares),
            final=stats,
        ) as rep:
            for square in atlas.squares:
                tile = self._resolve(square, fallbacks)
                canvas.blit(square.x * TILE_EDGE, square.y * TILE_EDGE, tile)
                rep.advance(task_id, current_item=square.name)
                stats["fallbacks"] = len(fallbacks)
            stats["squares"] = len(atlas.squares)
        result = CompileResult(
            image=canvas,
            total=len(atlas.squares),
            fallbacks=fallbacks,
            max_fail_rate=self.max_fail_rate,
        )
        if result.fail_rate > self.max_fail_rate:
            raise fallback_budget_error(
                fallbacks, result.total, self.max_fail_rate
            )
        return result


def compile_megatexture(
    atlas: Atlas,
    primary: ArchiveSource,
    backup: Optional[ArchiveSource] = None,
    max_fail_rate: float = MAX_FAIL_RATE,
) -> CompileResult:
    return MegatextureCompiler(primary, backup, max_fail_rate).compile(atlas)
