"""Tile contract and policy constants."""

from __future__ import annotations

# Tile contract: square tiles, 8-bit channels, canonical RGB in memory.
TILE_EDGE = 16
TILE_CHANNELS = 3
TILE_BIT_DEPTH = 8

# Fraction of squares allowed to resolve from the backup archive.
MAX_FAIL_RATE = 0.05

# Default eligibility predicate (resource pack block textures).
TEXTURE_PREFIX = "assets/minecraft/textures/block/"
TEXTURE_SUFFIX = ".png"

ARCHIVE_SUFFIX = ".zip"
REPORT_VERSION = 1

__all__ = [
    "TILE_EDGE",
    "TILE_CHANNELS",
    "TILE_BIT_DEPTH",
    "MAX_FAIL_RATE",
    "TEXTURE_PREFIX",
    "TEXTURE_SUFFIX",
    "ARCHIVE_SUFFIX",
    "REPORT_VERSION",
]
