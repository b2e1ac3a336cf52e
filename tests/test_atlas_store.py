"""Atlas persistence round-trips and strict loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from megatex.atlas.builder import assign_grid
from megatex.atlas.models import Atlas, AtlasSquare
from megatex.atlas.store import load_atlas, save_atlas
from megatex.errors import E_ATLAS_IO, E_ATLAS_SCHEMA, PersistenceError


def _sample() -> Atlas:
    return assign_grid([f"assets/t{i}.png" for i in range(7)], pack_name="pack.zip")


@pytest.mark.parametrize("suffix", [".json", ".yaml", ".yml"])
def test_round_trip(tmp_path: Path, suffix: str):
    atlas = _sample()
    path = save_atlas(atlas, tmp_path / f"atlas{suffix}")
    assert load_atlas(path) == atlas


def test_round_trip_empty(tmp_path: Path):
    atlas = Atlas(side_length=0, squares=[], pack_name=None)
    assert load_atlas(save_atlas(atlas, tmp_path / "empty.json")) == atlas


def test_json_record_layout(tmp_path: Path):
    path = save_atlas(_sample(), tmp_path / "atlas.json")
    data = json.loads(path.read_text())
    assert data["pack_name"] == "pack.zip"
    assert data["side_length"] == 3
    assert data["squares"][0] == {"name": "assets/t0.png", "x": 0, "y": 0}
    assert data["squares"][-1] == {"name": "assets/t6.png", "x": 0, "y": 2}


def test_yaml_record_is_plain_mapping(tmp_path: Path):
    path = save_atlas(_sample(), tmp_path / "atlas.yaml")
    data = yaml.safe_load(path.read_text())
    assert data["side_length"] == 3
    assert len(data["squares"]) == 7


def test_pack_name_optional(tmp_path: Path):
    path = tmp_path / "a.json"
    path.write_text(
        json.dumps({"side_length": 1, "squares": [{"name": "n", "x": 0, "y": 0}]})
    )
    atlas = load_atlas(path)
    assert atlas.pack_name is None
    assert atlas.squares == [AtlasSquare("n", 0, 0)]


@pytest.mark.parametrize(
    "record",
    [
        [],
        {"squares": []},
        {"side_length": 2},
        {"side_length": -1, "squares": []},
        {"side_length": "2", "squares": []},
        {"side_length": True, "squares": []},
        {"side_length": 2, "squares": {}},
        {"side_length": 2, "squares": [{"x": 0, "y": 0}]},
        {"side_length": 2, "squares": [{"name": "a", "x": 0}]},
        {"side_length": 2, "squares": [{"name": "a", "x": 2, "y": 0}]},
        {"side_length": 2, "squares": [{"name": "a", "x": 0, "y": 1.5}]},
        {
            "side_length": 2,
            "squares": [
                {"name": "a", "x": 1, "y": 1},
                {"name": "b", "x": 1, "y": 1},
            ],
        },
        {"side_length": 1, "squares": [], "pack_name": 7},
    ],
)
def test_malformed_records_rejected(tmp_path: Path, record):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(record))
    with pytest.raises(PersistenceError) as exc:
        load_atlas(path)
    assert exc.value.code == E_ATLAS_SCHEMA
    assert exc.value.context["path"] == str(path)


def test_unparseable_json(tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with pytest.raises(PersistenceError) as exc:
        load_atlas(path)
    assert exc.value.code == E_ATLAS_SCHEMA


def test_missing_file(tmp_path: Path):
    with pytest.raises(PersistenceError) as exc:
        load_atlas(tmp_path / "nope.json")
    assert exc.value.code == E_ATLAS_IO


def test_unwritable_target(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(PersistenceError) as exc:
        save_atlas(_sample(), blocker / "atlas.json")
    assert exc.value.code == E_ATLAS_IO
