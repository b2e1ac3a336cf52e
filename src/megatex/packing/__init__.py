"""Archive access, megatexture compilation and decomposition."""

from .archive import ArchiveEntry, ArchiveSource, open_archive
from .compiler import (
    CompileResult,
    MegatextureCompiler,
    compile_megatexture,
    load_square,
)
from .unpacker import UnpackResult, cut_tiles, unpack_megatexture

__all__ = [
    "ArchiveEntry",
    "ArchiveSource",
    "open_archive",
    "CompileResult",
    "MegatextureCompiler",
    "compile_megatexture",
    "load_square",
    "UnpackResult",
    "cut_tiles",
    "unpack_megatexture",
]
