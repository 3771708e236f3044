# gguf_metadata/cli.py
"""
cli.py

Rich console CLI:
- inspect: decode a .gguf metadata header, validate it, and print the record
           (or the raw key-value tree with --raw).
- version: show the package version.
"""
from __future__ import annotations

import argparse
import os
from typing import Optional

from rich.console import Console
from rich.markup import escape

from gguf_metadata import __version__
from gguf_metadata.io.file_reader import CHUNK_SIZE
from gguf_metadata.logging import configure_logging
from gguf_metadata.metadata_parser import parse, parse_raw
from gguf_metadata.model_formats.gguf.gguf import GGUFError
from gguf_metadata.reporting import console as console_reporter
from gguf_metadata.reporting.json_reporter import write_json

console = Console()


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {text}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gguf-metadata",
        description="Read and validate the metadata header of GGUF model files.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    sub = p.add_subparsers(dest="cmd", title="Available Commands", metavar="<command>")

    sp_inspect = sub.add_parser("inspect", help="Decode and validate a local .gguf file")
    sp_inspect.add_argument("path", help="Path to a GGUF model file")
    sp_inspect.add_argument(
        "--raw",
        action="store_true",
        help="Print the undecorated key-value tree and skip architecture validation",
    )
    sp_inspect.add_argument("--debug", action="store_true", help="Enable debug logging")
    sp_inspect.add_argument(
        "--json-out", type=str, default=None, help="Write the result as JSON to this path"
    )
    sp_inspect.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=CHUNK_SIZE,
        metavar="BYTES",
        help=f"Bytes requested per read (default: {CHUNK_SIZE})",
    )

    sub.add_parser("version", help="Show the version of gguf-metadata")

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "version":
        console.print(f"gguf-metadata version {__version__}")
        return 0

    if args.cmd == "inspect":
        configure_logging(debug=args.debug)
        path = args.path
        if not os.path.exists(path):
            console.print(f"[red]File not found:[/red] {escape(path)}")
            return 2

        try:
            if args.raw:
                result = parse_raw(path, chunk_size=args.chunk_size)
                console_reporter.render_raw(result)
            else:
                result = parse(path, chunk_size=args.chunk_size)
                console_reporter.render_record(result)
        except GGUFError as e:
            console_reporter.render_error(e)
            return 1
        except OSError as e:
            # Directories and unreadable files pass the existence check above.
            console_reporter.render_error(e)
            return 2

        if args.json_out:
            write_json(result, args.json_out)
            console.print(f"[dim]Wrote JSON → {args.json_out}[/dim]")

        return 0

    parser.print_help()
    return 1
