"""Atlas data model: grid placement of named tiles."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class AtlasSquare:
    name: str
    x: int
    y: int


@dataclass(slots=True)
class Atlas:
    side_length: int
    # Always row-major: top row first, left to right.
    squares: List[AtlasSquare] = field(default_factory=list)
    pack_name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.squares)

    @property
    def names(self) -> List[str]:
        return [sq.name for sq in self.squares]

    def find(self, name: str) -> Optional[AtlasSquare]:
        for sq in self.squares:
            if sq.name == name:
                return sq
        return None


def atlas_to_dict(atlas: Atlas) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "side_length": atlas.side_length,
        "squares": [
            {"name": sq.name, "x": sq.x, "y": sq.y} for sq in atlas.squares
        ],
    }
    if atlas.pack_name is not None:
        d["pack_name"] = atlas.pack_name
    return d


__all__ = ["Atlas", "AtlasSquare", "atlas_to_dict"]
