"""npycodec CLI – dump, inspect headers, and validate NPY / NPZ files."""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .dump import dump, is_archive
from .errors import NpyError
from .npy import load, open_source, parse_header
from .npz import NpzReader


def _fail(message: str) -> None:
    print(f"npycodec: {message}", file=sys.stderr)
    sys.exit(1)


# ── dump ────────────────────────────────────────────────────────────────────


def cmd_dump(args: argparse.Namespace) -> None:
    try:
        failures = dump(sys.stdout, args.file, digest=args.digest)
    except (OSError, NpyError) as exc:
        _fail(str(exc))
    if failures:
        sys.exit(1)


# ── header ──────────────────────────────────────────────────────────────────


def cmd_header(args: argparse.Namespace) -> None:
    try:
        with open_source(args.file) as f:
            if not is_archive(f):
                print(parse_header(f))
                return
            with NpzReader(f) as reader:
                for name in reader.list_entries():
                    try:
                        print(f"{name:24s}  {reader.header(name)}")
                    except NpyError as exc:
                        print(f"{name:24s}  error: {exc}")
    except (OSError, NpyError) as exc:
        _fail(str(exc))


# ── validate ────────────────────────────────────────────────────────────────


def cmd_validate(args: argparse.Namespace) -> None:
    try:
        with open_source(args.file) as f:
            if is_archive(f):
                with NpzReader(f) as reader:
                    errors = reader.validate()
                    count = len(reader.list_entries())
            else:
                load(f)
                errors, count = [], 1
    except (OSError, NpyError) as exc:
        _fail(str(exc))

    if errors:
        for e in errors:
            print(f"FAIL: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"OK – {count} buffer(s) decoded.")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="npycodec", description="NPY / NPZ inspection tools"
    )
    parser.add_argument(
        "--version", action="version", version=f"npycodec {__version__}"
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="log each header as it is parsed")
    sub = parser.add_subparsers(dest="command")

    # dump
    p = sub.add_parser("dump", help="Print headers and values")
    p.add_argument("file")
    p.add_argument("--digest", action="store_true",
                   help="Print a BLAKE3 digest of each buffer's contents")

    # header
    p = sub.add_parser("header", help="Print headers only")
    p.add_argument("file")

    # validate
    p = sub.add_parser("validate", help="Decode every buffer, report failures")
    p.add_argument("file")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    cmds = {
        "dump": cmd_dump,
        "header": cmd_header,
        "validate": cmd_validate,
    }
    fn = cmds.get(args.command)
    if fn:
        fn(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
