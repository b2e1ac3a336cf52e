"""Megatexture / atlas tooling for zipped texture packs."""

__version__ = "0.1.0"
