"""Tile codec: contract probing, RGBA truncation and RGB encoding."""

import io

import pytest
from PIL import Image

from archive_helper import png16, raw_png, tile_png
from megatex.constants import TILE_EDGE
from megatex.errors import DecodeError, EncodeError
from megatex.imaging import codec
from megatex.imaging.tile import TileImage


def test_probe_accepts_rgb_and_rgba_tiles():
    assert codec.probe(tile_png((1, 2, 3)))
    assert codec.probe(tile_png((1, 2, 3, 4), mode="RGBA"))


@pytest.mark.parametrize("size", [TILE_EDGE * 2, TILE_EDGE - 1, 1])
def test_probe_rejects_wrong_dimensions(size):
    assert codec.probe(tile_png((9, 9, 9), size=size)) is False


@pytest.mark.parametrize(
    "mode,color", [("L", 128), ("P", 3), ("LA", (10, 200))]
)
def test_probe_rejects_other_color_types(mode, color):
    assert codec.probe(tile_png(color, mode=mode)) is False


@pytest.mark.parametrize("mode", ["RGB", "RGBA"])
def test_probe_rejects_16bit(mode):
    assert codec.probe(png16(mode)) is False


@pytest.mark.parametrize("mode", ["RGB", "RGBA"])
def test_decode_rejects_16bit(mode):
    with pytest.raises(DecodeError) as exc:
        codec.decode(png16(mode))
    assert exc.value.context["bit_depth"] == 16


def test_probe_rejects_non_square():
    buf = io.BytesIO()
    Image.new("RGB", (TILE_EDGE, TILE_EDGE * 2)).save(buf, format="PNG")
    assert codec.probe(buf.getvalue()) is False


def test_probe_raises_on_garbage():
    with pytest.raises(DecodeError):
        codec.probe(b"definitely not a png")


def test_decode_rgba_drops_alpha_in_order():
    rgba = bytes(i % 256 for i in range(TILE_EDGE * TILE_EDGE * 4))
    tile = codec.decode(raw_png("RGBA", TILE_EDGE, rgba))
    expected = bytearray()
    for i in range(0, len(rgba), 4):
        expected += rgba[i : i + 3]
    assert bytes(tile.data) == bytes(expected)
    assert tile.dimensions() == (TILE_EDGE, TILE_EDGE)


def test_decode_rgb_is_unchanged():
    rgb = bytes((i * 3) % 256 for i in range(TILE_EDGE * TILE_EDGE * 3))
    tile = codec.decode(raw_png("RGB", TILE_EDGE, rgb))
    assert bytes(tile.data) == rgb


def test_decode_keeps_size_of_non_tile_images():
    tile = codec.decode(tile_png((5, 5, 5), size=TILE_EDGE * 2))
    assert tile.dimensions() == (TILE_EDGE * 2, TILE_EDGE * 2)


def test_decode_rejects_grayscale():
    with pytest.raises(DecodeError) as exc:
        codec.decode(tile_png(100, mode="L"))
    assert exc.value.context["mode"] == "L"


def test_decode_rejects_truncated_png():
    noise = bytes(
        (i * 131 + (i >> 3) * 17) % 251 for i in range(TILE_EDGE * TILE_EDGE * 3)
    )
    data = raw_png("RGB", TILE_EDGE, noise)
    with pytest.raises(DecodeError):
        codec.decode(data[: len(data) // 2])


def test_encode_writes_8bit_rgb():
    rgba = bytes(i % 256 for i in range(TILE_EDGE * TILE_EDGE * 4))
    tile = codec.decode(raw_png("RGBA", TILE_EDGE, rgba))
    with Image.open(io.BytesIO(codec.encode_bytes(tile))) as out:
        assert out.mode == "RGB"
        assert out.size == (TILE_EDGE, TILE_EDGE)
        data = out.tobytes()
    assert len(data) == len(rgba) // 4 * 3
    assert data == bytes(b for i, b in enumerate(rgba) if i % 4 != 3)


def test_encode_empty_image_fails():
    with pytest.raises(EncodeError):
        codec.encode_bytes(TileImage.new(0, 0))
