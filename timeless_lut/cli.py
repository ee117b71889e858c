"""Command line entry point for decoding timeless jewel lookup tables."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from .exceptions import LutError
from .formats import FORMATS, JewelFormat, JewelType, load_format_overrides, parse_jewel_type
from .io.loader import read_jewel_bytes
from .logging_config import close_debug_logger, configure_debug_file_logger
from .lut import LutData
from .pipeline import build_lut, decode_jewel

LOG = logging.getLogger(__name__)

_JEWEL_CHOICES = [member.value for member in JewelType]


def _jewel_arg(value: str) -> JewelType:
    try:
        return parse_jewel_type(value)
    except LutError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timeless-lut",
        description="Decode timeless jewel lookup tables",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--debug-log",
        type=Path,
        default=None,
        help="Also write a full debug trace to this file",
    )
    parser.add_argument(
        "--formats",
        type=Path,
        default=None,
        help="JSON file overriding seed ranges / node counts",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Decode a data directory into a JSON lookup table")
    build.add_argument("data_dir", type=Path)
    build.add_argument("-o", "--output", type=Path, required=True)
    build.add_argument(
        "--jewel",
        action="append",
        type=_jewel_arg,
        dest="jewels",
        metavar="NAME",
        help=f"Jewel to decode (repeatable; default: all of {', '.join(_JEWEL_CHOICES)})",
    )
    build.add_argument("--jobs", type=int, default=1, help="Decode jewels on N threads")

    inspect = sub.add_parser("inspect", help="Decode one jewel's file(s) and print statistics")
    inspect.add_argument("files", nargs="+", type=Path, help="Data file or parts, in part order")
    inspect.add_argument("--jewel", type=_jewel_arg, required=True, metavar="NAME")

    lookup = sub.add_parser("lookup", help="Print the modifier token for a seed and passive node")
    lookup.add_argument("lut", type=Path, help="JSON written by the build command")
    lookup.add_argument("--jewel", type=_jewel_arg, required=True, metavar="NAME")
    lookup.add_argument("--seed", type=int, required=True)
    lookup.add_argument("--node", type=int, required=True, help="Passive node id")
    return parser


def _cmd_build(args: argparse.Namespace, formats: Mapping[JewelType, JewelFormat]) -> int:
    report = build_lut(
        args.data_dir,
        jewel_types=args.jewels,
        jobs=max(1, args.jobs),
        formats=formats,
    )
    report.lut.save_json(args.output)
    summary = report.as_dict()
    summary["output"] = str(args.output)
    print(json.dumps(summary, indent=2))
    return 0 if report.ok else 1


def _cmd_inspect(args: argparse.Namespace, formats: Mapping[JewelType, JewelFormat]) -> int:
    raw = read_jewel_bytes(args.files)
    result = decode_jewel(args.jewel, raw, formats)
    summary: Dict[str, Any] = {
        "jewel_type": args.jewel.value,
        "format": formats[args.jewel].as_dict(),
        "compressed_bytes": len(raw),
    }
    summary.update(result.stats())
    summary["anomaly_details"] = [anomaly.as_dict() for anomaly in result.anomalies[:20]]
    print(json.dumps(summary, indent=2))
    return 0


def _cmd_lookup(args: argparse.Namespace) -> int:
    lut = LutData.load_json(args.lut)
    token = lut.get_modifier(args.jewel, args.seed, args.node)
    print(json.dumps({
        "jewel_type": args.jewel.value,
        "seed": args.seed,
        "node": args.node,
        "token": token,
    }))
    return 0 if token is not None else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    root = logging.getLogger()
    existing = list(root.handlers)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    # The debug file handler lowers the package logger to DEBUG; keep the
    # console at the requested level.
    for handler in root.handlers:
        if handler not in existing:
            handler.setLevel(level)
    package_logger = logging.getLogger("timeless_lut")
    if args.debug_log is not None:
        configure_debug_file_logger("timeless_lut", args.debug_log)

    try:
        formats: Mapping[JewelType, JewelFormat] = (
            load_format_overrides(args.formats) if args.formats else FORMATS
        )
        if args.command == "build":
            return _cmd_build(args, formats)
        if args.command == "inspect":
            return _cmd_inspect(args, formats)
        if args.command == "lookup":
            return _cmd_lookup(args)
    except (LutError, OSError) as exc:
        LOG.error("%s", exc)
        return 1
    finally:
        close_debug_logger(package_logger)

    parser.error("Unhandled command")
    return 2


if __name__ == "__main__":  # pragma: no cover - CLI wrapper
    raise SystemExit(main())
