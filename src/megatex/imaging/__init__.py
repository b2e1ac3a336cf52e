"""Raster buffer and PNG tile codec."""

from .tile import TileImage
from .codec import probe, decode, encode, encode_bytes

__all__ = ["TileImage", "probe", "decode", "encode", "encode_bytes"]
