#!/usr/bin/env python3
"""CLI for the CODA statement parser."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from coda_errors import ParseError
from coda_logging import configure_logging, get_logger
from coda_statement_parser import __version__, money_to_json, parse_file, statement_to_dict

logger = get_logger("coda.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coda-parse", description="Parse coda files")
    parser.add_argument("coda_files", nargs="+", type=Path, help="List of Coda files to parse")
    parser.add_argument("-j", "--json", action="store_true", help="Convert coda files to json")
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Debug parsed coda data on the console"
    )
    parser.add_argument(
        "-e",
        "--encoding",
        default="utf-8",
        help="Encoding for reading, any Python codec name such as windows-1252 (default utf-8)",
    )
    parser.add_argument("-o", "--output", type=Path, help="Output JSON file path (implies --json)")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.debug else None)

    as_json = args.json or args.output is not None
    parsed: list[dict] = []
    failed = 0
    for path in args.coda_files:
        try:
            statement = parse_file(path, encoding=args.encoding)
        except (ParseError, OSError, UnicodeDecodeError, LookupError) as exc:
            # One bad file must not stop the others.
            print(f"ERROR: {path}: {exc}", file=sys.stderr)
            failed += 1
            continue

        if as_json:
            parsed.append(statement_to_dict(statement))
        else:
            header = statement.header
            new_balance = statement.new_balance
            print(
                f"{path}: creation_date=[{header.creation_date.isoformat()}] "
                f"name_addressee=[{header.name_addressee}] movements={len(statement.movements)} "
                f"new_balance=[{new_balance.new_balance_sign.symbol}"
                f"{money_to_json(new_balance.new_balance)}]"
            )

    if as_json:
        indent = 2 if args.pretty or args.output else None
        rendered = json.dumps(parsed, ensure_ascii=False, indent=indent)
        if args.output:
            args.output.write_text(rendered + ("\n" if indent is not None else ""), encoding="utf-8")
        else:
            print(rendered)

    if failed:
        logger.debug("%d of %d files failed", failed, len(args.coda_files))
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
