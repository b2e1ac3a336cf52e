"""In-memory RGB raster used for tiles and the composed megatexture.

Height is never stored; it is derived from the buffer length so the two
can't drift apart. The buffer is only mutated through :meth:`TileImage.blit`.
"""

from __future__ import annotations

from ..constants import TILE_CHANNELS
from ..errors import internal_error

__all__ = ["TileImage"]


class TileImage:
    __slots__ = ("width", "data")

    def __init__(self, width: int, data: bytes | bytearray):
        if width < 0:
            raise ValueError(f"width must be non-negative, got {width}")
        stride = width * TILE_CHANNELS
        if stride and len(data) % stride:
            raise ValueError(
                f"buffer of {len(data)} bytes is not a whole number of {width}px rows"
            )
        if not stride and len(data):
            raise ValueError("zero-width image must have an empty buffer")
        self.width = width
        self.data = bytearray(data)

    @classmethod
    def new(cls, width: int, height: int) -> "TileImage":
        """Zero-filled canvas of ``width`` x ``height`` pixels."""
        return cls(width, bytes(width * height * TILE_CHANNELS))

    @property
    def row_stride(self) -> int:
        """Row width in bytes."""
        return self.width * TILE_CHANNELS

    @property
    def height(self) -> int:
        stride = self.row_stride
        return len(self.data) // stride if stride else 0

    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    def blit(self, x: int, y: int, other: "TileImage") -> None:
        """Overwrite the region at pixel ``(x, y)`` with all of ``other``.

        No clipping and no blending: ``other`` must fit entirely.
        """
        my_width, my_height = self.dimensions()
        other_width, other_height = other.dimensions()
        if not (0 <= x < my_width and 0 <= y < my_height):
            raise internal_error(
                "Attempt to blit outside image boundaries",
                {"x": x, "y": y, "width": my_width, "height": my_height},
            )
        if x + other_width > my_width or y + other_height > my_height:
            raise internal_error(
                "Blit source does not fit at target position",
                {
                    "x": x,
                    "y": y,
                    "source": [other_width, other_height],
                    "target": [my_width, my_height],
                },
            )
        src_stride = other.row_stride
        dst_stride = self.row_stride
        col = x * TILE_CHANNELS
        for row_idx in range(other_height):
            off = dst_stride * (row_idx + y) + col
            src = row_idx * src_stride
            self.data[off : off + src_stride] = other.data[src : src + src_stride]

    def crop(self, x: int, y: int, width: int, height: int) -> "TileImage":
        """Copy out the ``width`` x ``height`` region with top-left ``(x, y)``."""
        my_width, my_height = self.dimensions()
        if (
            x < 0
            or y < 0
            or width < 0
            or height < 0
            or x + width > my_width
            or y + height > my_height
        ):
            raise internal_error(
                "Attempt to crop outside image boundaries",
                {
                    "x": x,
                    "y": y,
                    "crop": [width, height],
                    "size": [my_width, my_height],
                },
            )
        out = bytearray()
        stride = self.row_stride
        col = x * TILE_CHANNELS
        span = width * TILE_CHANNELS
        for row in range(y, y + height):
            off = row * stride + col
            out += self.data[off : off + span]
        return TileImage(width, out)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileImage):
            return NotImplemented
        return self.width == other.width and self.data == other.data

    def __repr__(self) -> str:  # pragma: no cover
        return f"TileImage({self.width}x{self.height})"
