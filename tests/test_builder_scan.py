"""Eligibility scanning over zip packs and atlas building across sources."""

from __future__ import annotations

from pathlib import Path

import pytest

from archive_helper import block, tile_png, write_pack
from megatex.atlas.builder import build_atlas, make_name_filter, scan_eligible
from megatex.constants import TILE_EDGE
from megatex.errors import EmptyDatasetError
from megatex.packing.archive import open_archive


def _mixed_pack(path: Path) -> Path:
    return write_pack(
        path,
        {
            block("stone.png"): tile_png((10, 10, 10)),
            block("glass.png"): tile_png((1, 2, 3, 4), mode="RGBA"),
            block("big.png"): tile_png((5, 5, 5), size=TILE_EDGE * 2),
            block("gray.png"): tile_png(77, mode="L"),
            block("broken.png"): b"\x89PNG not really",
            block("notes.txt"): b"hello",
            "assets/minecraft/textures/item/apple.png": tile_png((9, 0, 0)),
            block("dirt.png"): tile_png((40, 30, 20)),
        },
        dirs=[block("sub")],
    )


def test_scan_filters_and_keeps_discovery_order(tmp_path: Path):
    with open_archive(_mixed_pack(tmp_path / "a.zip")) as archive:
        names = scan_eligible(archive)
    assert names == [block("stone.png"), block("glass.png"), block("dirt.png")]


def test_scan_custom_filter(tmp_path: Path):
    pred = make_name_filter("assets/minecraft/textures/item/", ".png")
    with open_archive(_mixed_pack(tmp_path / "a.zip")) as archive:
        assert scan_eligible(archive, pred) == [
            "assets/minecraft/textures/item/apple.png"
        ]


def test_build_single_source_atlas(tmp_path: Path):
    with open_archive(_mixed_pack(tmp_path / "a.zip")) as archive:
        atlas = build_atlas([archive])
    assert atlas.side_length == 2
    assert atlas.pack_name == "a.zip"
    assert [(s.name, s.x, s.y) for s in atlas.squares] == [
        (block("stone.png"), 0, 0),
        (block("glass.png"), 1, 0),
        (block("dirt.png"), 0, 1),
    ]


def test_build_multi_source_max_frequency(tmp_path: Path):
    x, y = block("x.png"), block("y.png")
    a = write_pack(tmp_path / "a.zip", {x: tile_png(), y: tile_png()})
    b = write_pack(tmp_path / "b.zip", {x: tile_png()})
    c = write_pack(tmp_path / "c.zip", {y: tile_png(), x: tile_png()})
    with open_archive(a) as aa, open_archive(b) as bb, open_archive(c) as cc:
        atlas = build_atlas([aa, bb, cc])
    assert atlas.names == [x]
    assert atlas.side_length == 1
    assert atlas.pack_name is None


def test_multi_source_counts_only_valid_tiles(tmp_path: Path):
    x, y = block("x.png"), block("y.png")
    a = write_pack(tmp_path / "a.zip", {x: tile_png(), y: tile_png()})
    # y present but wrong size in b: not eligible there
    b = write_pack(
        tmp_path / "b.zip", {x: tile_png(), y: tile_png(size=TILE_EDGE * 2)}
    )
    with open_archive(a) as aa, open_archive(b) as bb:
        atlas = build_atlas([aa, bb])
    assert atlas.names == [x]


def test_empty_dataset(tmp_path: Path):
    a = write_pack(tmp_path / "a.zip", {"readme.txt": b"nothing here"})
    b = write_pack(tmp_path / "b.zip", {block("big.png"): tile_png(size=64)})
    with open_archive(a) as aa, open_archive(b) as bb:
        with pytest.raises(EmptyDatasetError) as exc:
            build_atlas([aa, bb])
    assert exc.value.context["sources"] == ["a.zip", "b.zip"]
    assert "2 source archive(s)" in exc.value.message
