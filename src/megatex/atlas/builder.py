"""Atlas construction: eligibility scanning and grid assignment.

Names are placed in first-seen order. Scanning walks archive entries by
index; when several archives are merged the first archive that reports a
name fixes its position in the order. The grid is then filled row-major
from the front of that queue, so discovery order and placement order
match.
"""

from __future__ import annotations

from collections import deque
import math
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..constants import TEXTURE_PREFIX, TEXTURE_SUFFIX
from ..errors import DecodeError, empty_dataset_error
from ..imaging import codec
from ..logging import get_logger
from ..packing.archive import ArchiveSource
from ..reporting import task
from .models import Atlas, AtlasSquare

__all__ = [
    "NamePredicate",
    "make_name_filter",
    "default_name_filter",
    "scan_eligible",
    "grid_side_length",
    "assign_grid",
    "select_max_frequency",
    "build_atlas",
]

NamePredicate = Callable[[str], bool]


def make_name_filter(
    prefix: str = TEXTURE_PREFIX, suffix: str = TEXTURE_SUFFIX
) -> NamePredicate:
    def _filter(name: str) -> bool:
        return name.startswith(prefix) and name.endswith(suffix)

    return _filter


default_name_filter = make_name_filter()


def scan_eligible(
    archive: ArchiveSource, name_predicate: Optional[NamePredicate] = None
) -> List[str]:
    """Names of file entries that pass ``name_predicate`` and the tile probe.

    Probe rejects (including undecodable entries) are skipped, not raised.
    """
    predicate = name_predicate or default_name_filter
    logger = get_logger()
    task_id = f"scan.{archive.label}"
    eligible: Dict[str, None] = {}
    rejected = 0
    stats: dict = {}
    with task(
        task_id, f"Scan {archive.label}", total=len(archive), final=stats
    ) as rep:
        for entry in archive:
            rep.advance(task_id, current_item=entry.name)
            if not entry.is_file or not predicate(entry.name):
                continue
            if entry.name in eligible:
                continue
            try:
                ok = codec.probe(archive.read(entry.name))
            except DecodeError as e:
                logger.debug("skip %s: %s", entry.name, e.message)
                ok = False
            if ok:
                eligible[entry.name] = None
            else:
                rejected += 1
        stats["entries"] = len(eligible)
    logger.debug(
        "%s: %d eligible, %d rejected by probe",
        archive.label,
        len(eligible),
        rejected,
    )
    return list(eligible)


def grid_side_length(count: int) -> int:
    side = math.isqrt(count)
    return side if side * side >= count else side + 1


def assign_grid(names: Iterable[str], pack_name: Optional[str] = None) -> Atlas:
    queue = deque(names)
    side_length = grid_side_length(len(queue))
    squares: List[AtlasSquare] = []
    for y in range(side_length):
        for x in range(side_length):
            if not queue:
                break
            squares.append(AtlasSquare(name=queue.popleft(), x=x, y=y))
    return Atlas(side_length=side_length, squares=squares, pack_name=pack_name)


def select_max_frequency(name_sets: Sequence[Sequence[str]]) -> List[str]:
    """Keep the names eligible in the largest number of sources.

    Order is first-seen across ``name_sets``.
    """
    counts: Dict[str, int] = {}
    for names in name_sets:
        for name in dict.fromkeys(names):
            counts[name] = counts.get(name, 0) + 1
    if not counts:
        return []
    top = max(counts.values())
    return [name for name, n in counts.items() if n == top]


def build_atlas(
    archives: Sequence[ArchiveSource],
    name_predicate: Optional[NamePredicate] = None,
    pack_name: Optional[str] = None,
) -> Atlas:
    logger = get_logger()
    name_sets = [scan_eligible(a, name_predicate) for a in archives]
    if not any(name_sets):
        raise empty_dataset_error([a.label for a in archives])
    names = select_max_frequency(name_sets)
    if len(archives) > 1:
        total = len({n for s in name_sets for n in s})
        logger.info(
            "Selected %d of %d distinct textures present in the most sources",
            len(names),
            total,
        )
    if pack_name is None:
        pack_name = archives[0].label if len(archives) == 1 else None
    return assign_grid(names, pack_name=pack_name)
