"""TileImage raster tests: sizing, blit placement and crop read-back."""

from __future__ import annotations

import pytest

from megatex.constants import TILE_CHANNELS
from megatex.errors import BlitBoundsError
from megatex.imaging.tile import TileImage


def _pattern(width: int, height: int, seed: int = 1) -> TileImage:
    data = bytes((seed + i * 7) % 256 for i in range(width * height * TILE_CHANNELS))
    return TileImage(width, data)


def test_new_is_zero_filled():
    img = TileImage.new(4, 3)
    assert img.dimensions() == (4, 3)
    assert len(img.data) == 4 * 3 * TILE_CHANNELS
    assert not any(img.data)


def test_height_is_derived_from_buffer():
    img = TileImage(2, bytes(2 * 5 * TILE_CHANNELS))
    assert img.height == 5


def test_empty_canvas():
    img = TileImage.new(0, 0)
    assert img.dimensions() == (0, 0)


def test_ragged_buffer_rejected():
    with pytest.raises(ValueError):
        TileImage(4, bytes(4 * TILE_CHANNELS + 1))


@pytest.mark.parametrize("x,y", [(0, 0), (4, 0), (0, 4), (4, 4), (2, 3)])
def test_blit_then_crop_reads_back_source(x, y):
    canvas = TileImage.new(8, 8)
    tile = _pattern(4, 4, seed=x * 10 + y)
    canvas.blit(x, y, tile)
    assert canvas.crop(x, y, 4, 4) == tile


def test_blit_leaves_other_pixels_untouched():
    canvas = TileImage.new(8, 8)
    canvas.blit(4, 4, _pattern(4, 4))
    assert not any(canvas.crop(0, 0, 8, 4).data)
    assert not any(canvas.crop(0, 4, 4, 4).data)


def test_blit_overwrites_without_blending():
    canvas = TileImage.new(4, 4)
    canvas.blit(0, 0, TileImage(4, b"\xff" * 4 * 4 * TILE_CHANNELS))
    second = _pattern(2, 2, seed=3)
    canvas.blit(1, 1, second)
    assert canvas.crop(1, 1, 2, 2) == second


@pytest.mark.parametrize("x,y", [(8, 0), (0, 8), (-1, 0)])
def test_blit_origin_out_of_bounds(x, y):
    canvas = TileImage.new(8, 8)
    with pytest.raises(BlitBoundsError):
        canvas.blit(x, y, _pattern(1, 1))


def test_blit_source_overflow_rejected():
    canvas = TileImage.new(8, 8)
    with pytest.raises(BlitBoundsError):
        canvas.blit(6, 0, _pattern(4, 4))
    assert len(canvas.data) == 8 * 8 * TILE_CHANNELS


def test_crop_out_of_bounds():
    with pytest.raises(BlitBoundsError):
        TileImage.new(8, 8).crop(6, 6, 4, 4)
