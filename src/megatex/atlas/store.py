"""Atlas persistence (JSON by default, YAML for .yaml/.yml paths).

Record layout::

    {
      "pack_name": "optional label",
      "side_length": 3,
      "squares": [{"name": "...", "x": 0, "y": 0}, ...]
    }

Loading is strict: a missing or mistyped field is a PersistenceError.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, TextIO, Union

import yaml

from ..errors import E_ATLAS_IO, E_ATLAS_SCHEMA, PersistenceError
from .models import Atlas, AtlasSquare, atlas_to_dict

__all__ = [
    "dump_atlas",
    "parse_atlas",
    "read_atlas",
    "save_atlas",
    "load_atlas",
    "atlas_format_for",
]

YAML_SUFFIXES = {".yaml", ".yml"}


def atlas_format_for(path: Union[str, Path]) -> str:
    return "yaml" if Path(path).suffix.lower() in YAML_SUFFIXES else "json"


def _schema_error(message: str, **ctx: Any) -> PersistenceError:
    return PersistenceError(code=E_ATLAS_SCHEMA, message=message, context=ctx)


def _require_uint(obj: Dict[str, Any], key: str, where: str) -> int:
    if key not in obj:
        raise _schema_error(f"Missing field '{key}'", path=where)
    value = obj[key]
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise _schema_error(
            f"Field '{key}' must be an unsigned integer", path=where, value=value
        )
    return value


def parse_atlas(data: Any) -> Atlas:
    if not isinstance(data, dict):
        raise _schema_error("Root of atlas record must be an object")
    side_length = _require_uint(data, "side_length", "$")
    pack_name = data.get("pack_name")
    if pack_name is not None and not isinstance(pack_name, str):
        raise _schema_error("Field 'pack_name' must be a string", path="$")
    if "squares" not in data:
        raise _schema_error("Missing field 'squares'", path="$")
    raw_squares = data["squares"]
    if not isinstance(raw_squares, list):
        raise _schema_error("Field 'squares' must be a list", path="$")
    squares: List[AtlasSquare] = []
    seen: set[tuple[int, int]] = set()
    for i, raw in enumerate(raw_squares):
        where = f"$.squares[{i}]"
        if not isinstance(raw, dict):
            raise _schema_error("Square must be an object", path=where)
        name = raw.get("name")
        if not isinstance(name, str):
            raise _schema_error("Missing or non-string 'name'", path=where)
        x = _require_uint(raw, "x", where)
        y = _require_uint(raw, "y", where)
        if x >= side_length or y >= side_length:
            raise _schema_error(
                f"Square ({x}, {y}) outside {side_length}x{side_length} grid",
                path=where,
                name=name,
            )
        if (x, y) in seen:
            raise _schema_error(
                f"Duplicate grid position ({x}, {y})", path=where, name=name
            )
        seen.add((x, y))
        squares.append(AtlasSquare(name=name, x=x, y=y))
    return Atlas(side_length=side_length, squares=squares, pack_name=pack_name)


def dump_atlas(atlas: Atlas, stream: TextIO, fmt: str = "json") -> None:
    data = atlas_to_dict(atlas)
    try:
        if fmt == "yaml":
            yaml.safe_dump(data, stream, sort_keys=False)
        else:
            json.dump(data, stream, indent=2)
            stream.write("\n")
    except OSError as e:
        raise PersistenceError(
            code=E_ATLAS_IO, message=f"Failed to write atlas: {e}"
        ) from e


def read_atlas(stream: TextIO, fmt: str = "json") -> Atlas:
    try:
        if fmt == "yaml":
            data = yaml.safe_load(stream)
        else:
            data = json.load(stream)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise PersistenceError(
            code=E_ATLAS_SCHEMA, message=f"Failed to parse atlas: {e}"
        ) from e
    except OSError as e:
        raise PersistenceError(
            code=E_ATLAS_IO, message=f"Failed to read atlas: {e}"
        ) from e
    return parse_atlas(data)


def save_atlas(atlas: Atlas, path: Union[str, Path]) -> Path:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("w", encoding="utf-8") as f:
            dump_atlas(atlas, f, atlas_format_for(p))
    except PersistenceError as e:
        raise e.with_context(path=str(p))
    except OSError as e:
        raise PersistenceError(
            code=E_ATLAS_IO,
            message=f"Failed to create atlas file: {e}",
            context={"path": str(p)},
        ) from e
    return p


def load_atlas(path: Union[str, Path]) -> Atlas:
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            return read_atlas(f, atlas_format_for(p))
    except PersistenceError as e:
        raise e.with_context(path=str(p))
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceError(
            code=E_ATLAS_IO,
            message=f"Failed to open atlas file: {e}",
            context={"path": str(p)},
        ) from e
