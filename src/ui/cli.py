"""Command line shell: print or count the lines of a file or standard input."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from common.config import load_runtime_config
from common.errors import BackendError
from core.lines import BufferRegistry, LineReader, create_line_reader_from_profile

STDIN_FD = 0


def open_source(path: Optional[str]) -> int:
    if path is None or path == "-":
        return STDIN_FD
    return os.open(path, os.O_RDONLY)


def build_reader(args: argparse.Namespace, handle: int, registry: BufferRegistry) -> LineReader:
    overrides: Dict[str, Dict[str, Any]] = {"profile": {}}
    if args.buffer_size is not None:
        overrides["profile"]["buffer_size"] = args.buffer_size
    if args.chunk_size is not None:
        overrides["profile"]["chunk_size"] = args.chunk_size
    if args.encoding is not None:
        overrides["profile"]["encoding"] = args.encoding
    if args.errors is not None:
        overrides["profile"]["error_policy"] = args.errors
    config_path = Path(args.config) if args.config else None
    runtime = load_runtime_config(args.profile, config_path=config_path, overrides=overrides)
    return create_line_reader_from_profile(handle, runtime, registry=registry)


def command_lines(args: argparse.Namespace, reader: LineReader, out: TextIO) -> None:
    for number, line in enumerate(reader, start=1):
        if args.number:
            out.write(f"{number:6d}\t")
        out.write(line)


def command_count(args: argparse.Namespace, reader: LineReader, out: TextIO) -> None:
    total = sum(1 for _ in reader)
    out.write(f"{total}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fdlines",
        description="Buffered newline-delimited reader for files and descriptors",
    )
    sub = parser.add_subparsers(dest="command")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("path", nargs="?", help="Input file (default: standard input)")
    common.add_argument("--profile", default="default", help="Reader profile from the config file")
    common.add_argument("--config", help="Path to a JSON config (default: config/defaults.json)")
    common.add_argument("--buffer-size", type=int, help="Initial buffer capacity in bytes")
    common.add_argument("--chunk-size", type=int, help="Bytes requested per read")
    common.add_argument("--encoding", help="Text encoding of the input")
    common.add_argument(
        "--errors",
        choices=["fail-fast", "replace"],
        help="Decode error policy (overrides the profile)",
    )
    common.add_argument("--verbose", action="store_true", help="Log buffer growth and compaction")

    lines = sub.add_parser("lines", parents=[common], help="Write every line to stdout")
    lines.add_argument("--number", action="store_true", help="Prefix each line with its number")
    lines.set_defaults(func=command_lines)

    count = sub.add_parser("count", parents=[common], help="Print the number of lines")
    count.set_defaults(func=command_count)

    return parser


def main(argv: list[str] | None = None, *, out: TextIO | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    out = out or sys.stdout

    registry = BufferRegistry()
    try:
        handle = open_source(args.path)
    except OSError as exc:
        print(f"[fdlines] Cannot open {args.path}: {exc}", file=sys.stderr)
        return 1
    try:
        reader = build_reader(args, handle, registry)
        args.func(args, reader, out)
    except BackendError as exc:
        print(f"[fdlines] {exc}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as exc:
        print(f"[fdlines] Decode failed: {exc}. Retry with --errors replace or --encoding.", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"[fdlines] Read failed: {exc}", file=sys.stderr)
        return 1
    finally:
        registry.remove(handle)
        if handle != STDIN_FD:
            os.close(handle)
    return 0


if __name__ == "__main__":
    sys.exit(main())
