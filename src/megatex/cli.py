"""Command line interface for megatex."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .api import (
    AtlasOptions,
    PackOptions,
    UnpackOptions,
    create_atlas,
    pack,
    unpack,
)
from .constants import MAX_FAIL_RATE, TEXTURE_PREFIX, TEXTURE_SUFFIX
from .errors import MegatexError
from .logging import configure_logging
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _atlas_cmd(args: argparse.Namespace) -> int:
    res = create_atlas(
        AtlasOptions(
            sources=args.sources,
            atlas_path=args.atlas,
            pack_name=args.pack_name,
            prefix=args.prefix,
            suffix=args.suffix,
        )
    )
    print(
        f"Wrote atlas {res.atlas_path} ({len(res.atlas.squares)} textures, "
        f"{res.atlas.side_length}x{res.atlas.side_length} grid, "
        f"{len(res.sources)} source(s))"
    )
    return 0


def _pack_cmd(args: argparse.Namespace) -> int:
    res = pack(
        PackOptions(
            primary=args.primary,
            atlas_path=args.atlas,
            output_path=args.output,
            backup=args.backup,
            create_atlas=args.create_atlas,
            max_fail_rate=args.max_fail_rate,
            report_path=args.emit_report,
            prefix=args.prefix,
            suffix=args.suffix,
        )
    )
    for out in res.outputs:
        print(
            f"Wrote {out.output_file} ({out.squares} textures, "
            f"{len(out.fallbacks)} from backup, {out.bytes_written} bytes)"
        )
    return 0


def _unpack_cmd(args: argparse.Namespace) -> int:
    res = unpack(
        UnpackOptions(
            megatexture=args.megatexture,
            atlas_path=args.atlas,
            template=args.template,
            output_path=args.output,
        )
    )
    print(
        f"Wrote {args.output} ({res.replaced} replaced, {res.added} added, "
        f"{res.copied} copied)"
    )
    return 0


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--prefix",
        default=TEXTURE_PREFIX,
        help=f"Entry path prefix for eligible textures (default: {TEXTURE_PREFIX})",
    )
    p.add_argument(
        "--suffix",
        default=TEXTURE_SUFFIX,
        help=f"Entry name suffix for eligible textures (default: {TEXTURE_SUFFIX})",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="megatex",
        description="Pack block textures of resource packs into a megatexture",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help=(
            "Reporter backend: plain (default), rich, json (JSONL events), silent"
        ),
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    a = sub.add_parser(
        "atlas",
        help="Build an atlas from one or more resource packs",
        description=(
            "Scan SOURCE archives (zip files or directories of zip files) and "
            "write the atlas. With several sources only textures eligible in "
            "the largest number of them are kept."
        ),
    )
    a.add_argument("sources", nargs="+", type=Path, metavar="SOURCE")
    a.add_argument("atlas", type=Path, help="Atlas file to write (.json or .yaml)")
    a.add_argument("--pack-name", dest="pack_name", help="Label stored in the atlas")
    _add_filter_args(a)
    a.set_defaults(func=_atlas_cmd)

    k = sub.add_parser("pack", help="Compile a megatexture using an atlas")
    k.add_argument(
        "primary",
        type=Path,
        help="Primary resource pack (or a directory of packs, compiled one by one)",
    )
    k.add_argument("atlas", type=Path)
    k.add_argument(
        "output",
        type=Path,
        help="Output PNG (a directory when PRIMARY is a directory)",
    )
    k.add_argument(
        "--backup",
        type=Path,
        help="Backup resource pack for missing or invalid textures",
    )
    k.add_argument(
        "--create-atlas",
        dest="create_atlas",
        action="store_true",
        help="Build the atlas from PRIMARY and write it before compiling",
    )
    k.add_argument(
        "--max-fail-rate",
        dest="max_fail_rate",
        type=float,
        default=MAX_FAIL_RATE,
        help=(
            "Maximum share of textures taken from the backup "
            f"(default: {MAX_FAIL_RATE})"
        ),
    )
    k.add_argument(
        "--emit-report",
        dest="emit_report",
        type=Path,
        help="Optional path to write a JSON pack report",
    )
    _add_filter_args(k)
    k.set_defaults(func=_pack_cmd)

    u = sub.add_parser(
        "unpack", help="Split a megatexture back into a resource pack"
    )
    u.add_argument("megatexture", type=Path)
    u.add_argument("atlas", type=Path)
    u.add_argument("template", type=Path, help="Template resource pack")
    u.add_argument("output", type=Path, help="Resource pack to write")
    u.set_defaults(func=_unpack_cmd)

    return p


def _select_reporter(name: str) -> None:
    if name == "json":
        set_reporter(JsonLinesReporter())
    elif name == "silent":
        set_reporter(SilentReporter())
    elif name == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        # rich without a TTY falls back to plain
        set_reporter(PlainReporter())


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    _select_reporter(args.reporter)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    rep = get_reporter()
    try:
        return args.func(args)
    except MegatexError as e:
        rep.error(str(e), code=e.code, context=e.context or {})
        return 1
    finally:
        rep.flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
