"""High-level operations behind the CLI subcommands.

Each function takes an options dataclass, does its own archive/file
handling and returns a small result record. Errors are
:class:`~megatex.errors.MegatexError` subclasses tagged with the phase.
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass, field
import hashlib
from pathlib import Path
from typing import List, Optional

from .atlas.builder import build_atlas, make_name_filter
from .atlas.models import Atlas
from .atlas.store import load_atlas, save_atlas
from .constants import MAX_FAIL_RATE, TEXTURE_PREFIX, TEXTURE_SUFFIX
from .errors import E_ENCODE, E_ARCHIVE, ArchiveError, EncodeError, MegatexError
from .imaging import codec
from .imaging.tile import TileImage
from .logging import get_logger, section, step
from .manifest import write_report
from .packing.archive import ArchiveSource, open_archive
from .packing.compiler import compile_megatexture
from .packing.unpacker import UnpackResult, unpack_megatexture
from .reporting import get_reporter
from .utils.paths import discover_archives, expand_sources, output_for

__all__ = [
    "AtlasOptions",
    "AtlasResult",
    "PackOptions",
    "PackedOutput",
    "PackResult",
    "UnpackOptions",
    "UnpackResult",
    "create_atlas",
    "pack",
    "unpack",
]


@dataclass(slots=True)
class AtlasOptions:
    sources: List[Path]
    atlas_path: Path
    pack_name: str | None = None
    prefix: str = TEXTURE_PREFIX
    suffix: str = TEXTURE_SUFFIX


@dataclass(slots=True)
class AtlasResult:
    atlas_path: Path
    atlas: Atlas
    sources: List[Path]


@dataclass(slots=True)
class PackOptions:
    primary: Path
    atlas_path: Path
    output_path: Path
    backup: Path | None = None
    # Build the atlas from the primary source(s) and persist it first
    create_atlas: bool = False
    max_fail_rate: float = MAX_FAIL_RATE
    # Optional JSON report per compiled output
    report_path: Path | None = None
    prefix: str = TEXTURE_PREFIX
    suffix: str = TEXTURE_SUFFIX


@dataclass(slots=True)
class PackedOutput:
    archive: Path
    output_file: Path
    bytes_written: int
    squares: int
    fallbacks: List[str] = field(default_factory=list)


@dataclass(slots=True)
class PackResult:
    atlas: Atlas
    outputs: List[PackedOutput] = field(default_factory=list)


@dataclass(slots=True)
class UnpackOptions:
    megatexture: Path
    atlas_path: Path
    template: Path
    output_path: Path


def _open_all(stack: ExitStack, paths: List[Path]) -> List[ArchiveSource]:
    return [stack.enter_context(open_archive(p)) for p in paths]


def create_atlas(options: AtlasOptions) -> AtlasResult:
    logger = get_logger()
    paths = expand_sources(options.sources)
    if not paths:
        raise ArchiveError(
            code=E_ARCHIVE,
            message="No source archives found",
            context={"sources": [str(s) for s in options.sources]},
        )
    predicate = make_name_filter(options.prefix, options.suffix)
    try:
        with ExitStack() as stack:
            archives = _open_all(stack, paths)
            atlas = build_atlas(archives, predicate, options.pack_name)
        save_atlas(atlas, options.atlas_path)
    except MegatexError as e:
        raise e.with_context(phase="atlas")
    logger.debug("Atlas written to %s", options.atlas_path)
    get_reporter().status(
        "Atlas summary: "
        + f"file={options.atlas_path.name} sources={len(paths)} "
        + f"squares={len(atlas.squares)} side_length={atlas.side_length}"
    )
    return AtlasResult(atlas_path=options.atlas_path, atlas=atlas, sources=paths)


def _write_image(image: TileImage, output_path: Path) -> bytes:
    data = codec.encode_bytes(image)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    except OSError as e:
        raise EncodeError(
            code=E_ENCODE,
            message=f"Failed to write {output_path}: {e}",
            context={"output": str(output_path)},
        ) from e
    return data


def _pack_one(
    archive_path: Path,
    atlas: Atlas,
    backup_path: Optional[Path],
    output_path: Path,
    max_fail_rate: float,
    report_path: Optional[Path],
) -> PackedOutput:
    logger = get_logger()
    with ExitStack() as stack:
        primary = stack.enter_context(open_archive(archive_path))
        backup = (
            stack.enter_context(open_archive(backup_path))
            if backup_path is not None
            else None
        )
        result = compile_megatexture(atlas, primary, backup, max_fail_rate)
    data = _write_image(result.image, output_path)
    if report_path is not None:
        write_report(
            atlas,
            result,
            report_path,
            output_path=output_path,
            file_sha256=hashlib.sha256(data).hexdigest(),
        )
        logger.debug("Report written to %s", report_path)
    width, height = result.image.dimensions()
    get_reporter().status(
        "Pack summary: "
        + f"file={output_path.name} size={width}x{height} "
        + f"squares={result.total} fallbacks={len(result.fallbacks)} "
        + f"fail_rate={result.fail_rate:.4f}"
    )
    return PackedOutput(
        archive=archive_path,
        output_file=output_path,
        bytes_written=len(data),
        squares=result.total,
        fallbacks=result.fallbacks,
    )


def pack(options: PackOptions) -> PackResult:
    batch = options.primary.is_dir()
    archives = discover_archives(options.primary)
    if not archives:
        raise ArchiveError(
            code=E_ARCHIVE,
            message=f"No archives found in {options.primary}",
            context={"archive": str(options.primary)},
        )
    if options.create_atlas:
        atlas = create_atlas(
            AtlasOptions(
                sources=archives,
                atlas_path=options.atlas_path,
                prefix=options.prefix,
                suffix=options.suffix,
            )
        ).atlas
    else:
        try:
            atlas = load_atlas(options.atlas_path)
        except MegatexError as e:
            raise e.with_context(phase="load-atlas")
        step(
            f"Loaded atlas {options.atlas_path.name} "
            f"({len(atlas.squares)} squares, side {atlas.side_length})"
        )
    result = PackResult(atlas=atlas)
    # Each archive is an independent unit: own handles, own canvas.
    for archive_path in archives:
        if batch:
            output_path = output_for(archive_path, options.output_path)
            report_path = (
                output_for(archive_path, options.report_path, ".report.json")
                if options.report_path is not None
                else None
            )
        else:
            output_path = options.output_path
            report_path = options.report_path
        try:
            with section(f"pack {archive_path.name}"):
                packed = _pack_one(
                    archive_path,
                    atlas,
                    options.backup,
                    output_path,
                    options.max_fail_rate,
                    report_path,
                )
        except MegatexError as e:
            raise e.with_context(phase="pack", source=archive_path.name)
        result.outputs.append(packed)
    return result


def unpack(options: UnpackOptions) -> UnpackResult:
    try:
        atlas = load_atlas(options.atlas_path)
        try:
            image_bytes = options.megatexture.read_bytes()
        except OSError as e:
            raise ArchiveError(
                code=E_ARCHIVE,
                message=f"Failed to read megatexture {options.megatexture}: {e}",
                context={"megatexture": str(options.megatexture)},
            ) from e
        megatexture = codec.decode(image_bytes)
        options.output_path.parent.mkdir(parents=True, exist_ok=True)
        with ExitStack() as stack:
            template = stack.enter_context(open_archive(options.template))
            sink = stack.enter_context(options.output_path.open("wb"))
            result = unpack_megatexture(megatexture, atlas, template, sink)
    except MegatexError as e:
        raise e.with_context(phase="unpack")
    except OSError as e:
        raise ArchiveError(
            code=E_ARCHIVE,
            message=f"Failed to create {options.output_path}: {e}",
            context={"phase": "unpack", "output": str(options.output_path)},
        ) from e
    get_reporter().status(
        "Unpack summary: "
        + f"file={options.output_path.name} replaced={result.replaced} "
        + f"added={result.added} copied={result.copied}"
    )
    return result
