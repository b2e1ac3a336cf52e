"""Tile codec: PNG <-> :class:`TileImage` via Pillow.

The tile contract is ``TILE_EDGE`` x ``TILE_EDGE`` pixels, 8 bits per
channel, RGB or RGBA. RGBA input is truncated to RGB (alpha dropped, not
blended); output is always 8-bit RGB.
"""

from __future__ import annotations

import io
from typing import BinaryIO, Union

from PIL import Image, UnidentifiedImageError

from ..constants import TILE_BIT_DEPTH, TILE_EDGE
from ..errors import E_ENCODE, EncodeError, decode_error
from .tile import TileImage

__all__ = ["probe", "decode", "encode", "encode_bytes", "SUPPORTED_MODES"]

SUPPORTED_MODES = ("RGB", "RGBA")

Source = Union[bytes, bytearray, BinaryIO]


def _as_stream(source: Source) -> BinaryIO:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def _open(source: Source) -> Image.Image:
    try:
        return Image.open(_as_stream(source))
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise decode_error(f"Not a decodable image: {e}") from e


def _bit_depth(image: Image.Image) -> int:
    # Pillow reports 16-bit PNG colour images as "RGB"/"RGBA"; the raw mode
    # of the pending decoder tile still carries the sample width.
    if image.tile:
        rawmode = image.tile[0][3]
        if isinstance(rawmode, tuple):
            rawmode = rawmode[0] if rawmode else ""
        if isinstance(rawmode, str) and ";16" in rawmode:
            return 16
    return 8


def probe(source: Source) -> bool:
    """Header-only check of the tile contract.

    Returns False for a well-formed image that does not match; raises
    :class:`DecodeError` only when the bytes are not an image at all.
    """
    with _open(source) as image:
        return (
            image.size == (TILE_EDGE, TILE_EDGE)
            and image.mode in SUPPORTED_MODES
            and _bit_depth(image) == TILE_BIT_DEPTH
        )


def decode(source: Source) -> TileImage:
    with _open(source) as image:
        if image.mode not in SUPPORTED_MODES:
            raise decode_error(
                f"Unsupported color type {image.mode}",
                {"mode": image.mode},
            )
        depth = _bit_depth(image)
        if depth != TILE_BIT_DEPTH:
            raise decode_error(
                f"Unsupported bit depth {depth}", {"bit_depth": depth}
            )
        try:
            image.load()
        except (OSError, SyntaxError, ValueError) as e:
            raise decode_error(f"Corrupt image data: {e}") from e
        data = bytearray(image.tobytes())
        if image.mode == "RGBA":
            del data[3::4]
        return TileImage(image.width, data)


def encode(tile: TileImage, sink: BinaryIO) -> None:
    width, height = tile.dimensions()
    if not width or not height:
        raise EncodeError(
            code=E_ENCODE,
            message="Cannot encode an empty image",
            context={"width": width, "height": height},
        )
    image = Image.frombytes("RGB", (width, height), bytes(tile.data))
    try:
        image.save(sink, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodeError(
            code=E_ENCODE,
            message=f"Failed to write PNG: {e}",
            context={"width": width, "height": height},
        ) from e


def encode_bytes(tile: TileImage) -> bytes:
    buf = io.BytesIO()
    encode(tile, buf)
    return buf.getvalue()
