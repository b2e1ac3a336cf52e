from .models import Atlas, AtlasSquare, atlas_to_dict
from .builder import (
    assign_grid,
    build_atlas,
    default_name_filter,
    make_name_filter,
    scan_eligible,
    select_max_frequency,
)
from .store import load_atlas, save_atlas, dump_atlas, read_atlas, parse_atlas

__all__ = [
    "Atlas",
    "AtlasSquare",
    "atlas_to_dict",
    "assign_grid",
    "build_atlas",
    "default_name_filter",
    "make_name_filter",
    "scan_eligible",
    "select_max_frequency",
    "load_atlas",
    "save_atlas",
    "dump_atlas",
    "read_atlas",
    "parse_atlas",
]
