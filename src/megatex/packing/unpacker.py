"""Decompose a megatexture back into a resource pack.

Every entry of the template archive is copied in order; entries named by
the atlas are replaced with the tile cut from the megatexture. Atlas names
the template lacks are appended afterwards, in atlas order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO
import zipfile

from ..atlas.models import Atlas
from ..constants import TILE_EDGE
from ..errors import E_ARCHIVE, ArchiveError, dimension_error
from ..imaging import codec
from ..imaging.tile import TileImage
from ..reporting import task
from .archive import ArchiveSource

__all__ = ["UnpackResult", "cut_tiles", "unpack_megatexture"]


@dataclass(slots=True)
class UnpackResult:
    replaced: int
    added: int
    copied: int


def cut_tiles(megatexture: TileImage, atlas: Atlas) -> dict[str, bytes]:
    """Encoded PNG bytes per atlas name."""
    edge = TILE_EDGE * atlas.side_length
    if megatexture.dimensions() != (edge, edge):
        width, height = megatexture.dimensions()
        raise dimension_error(
            f"Megatexture is {width}x{height}, atlas expects {edge}x{edge}",
            {"side_length": atlas.side_length},
        )
    tiles: dict[str, bytes] = {}
    stats: dict = {}
    with task(
        "unpack.cut", "Cut tiles", total=len(atlas.squares), final=stats
    ) as rep:
        for sq in atlas.squares:
            tile = megatexture.crop(
                sq.x * TILE_EDGE, sq.y * TILE_EDGE, TILE_EDGE, TILE_EDGE
            )
            tiles[sq.name] = codec.encode_bytes(tile)
            rep.advance("unpack.cut", current_item=sq.name)
        stats["squares"] = len(tiles)
    return tiles


def unpack_megatexture(
    megatexture: TileImage,
    atlas: Atlas,
    template: ArchiveSource,
    sink: BinaryIO,
) -> UnpackResult:
    tiles = cut_tiles(megatexture, atlas)
    replaced = copied = added = 0
    stats: dict = {}
    try:
        with task(
            "unpack.write", "Write pack", total=len(template), final=stats
        ) as rep, zipfile.ZipFile(
            sink, "w", compression=zipfile.ZIP_DEFLATED
        ) as out:
            for entry in template:
                if entry.is_file and entry.name in tiles:
                    out.writestr(entry.name, tiles[entry.name])
                    replaced += 1
                elif entry.is_file:
                    out.writestr(entry.name, template.read(entry.name))
                    copied += 1
                else:
                    out.writestr(entry.name, b"")
                    copied += 1
                rep.advance("unpack.write", current_item=entry.name)
            for name in tiles:
                if name not in template:
                    out.writestr(name, tiles[name])
                    added += 1
            stats["entries"] = replaced + copied + added
    except OSError as e:
        raise ArchiveError(
            code=E_ARCHIVE,
            message=f"Failed to write unpacked archive: {e}",
            context={"template": template.label},
        ) from e
    return UnpackResult(replaced=replaced, added=added, copied=copied)
