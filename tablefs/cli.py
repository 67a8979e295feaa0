# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Command line access to a table-backed filesystem."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from tablefs.container import Container
from tablefs.infrastructure.db import create_schema
from tablefs.infrastructure.health import check_database
from tablefs.shared.errors import AppError
from tablefs.shared.logging import logger, run_context, setup_logging


def _format_entry(entry: dict) -> str:
    when = datetime.fromtimestamp(entry.get("timestamp", 0), tz=UTC).strftime("%Y-%m-%d %H:%M")
    if entry["type"] == "dir":
        return f"d {'-':>10} {when} {entry['path']}/"
    return f"f {entry.get('size', 0):>10} {when} {entry['path']}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tablefs", description="Filesystem stored in a table")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the file table if missing")
    sub.add_parser("check", help="Verify the database and table are reachable")

    ls = sub.add_parser("ls", help="List a directory")
    ls.add_argument("directory", nargs="?", default="")
    ls.add_argument("-r", "--recursive", action="store_true")

    cat = sub.add_parser("cat", help="Write file contents to stdout")
    cat.add_argument("path")

    put = sub.add_parser("put", help="Store a local file (stdin when omitted)")
    put.add_argument("path")
    put.add_argument("source", nargs="?", type=Path)

    mkdir = sub.add_parser("mkdir", help="Create a directory entry")
    mkdir.add_argument("path")

    mv = sub.add_parser("mv", help="Rename a file or directory")
    mv.add_argument("path")
    mv.add_argument("new_path")

    cp = sub.add_parser("cp", help="Copy a file")
    cp.add_argument("path")
    cp.add_argument("new_path")

    rm = sub.add_parser("rm", help="Delete a file, or a directory with -r")
    rm.add_argument("path")
    rm.add_argument("-r", "--recursive", action="store_true")

    stat = sub.add_parser("stat", help="Show metadata of a path")
    stat.add_argument("path")
    return parser


def _run(args: argparse.Namespace, container: Container) -> int:
    fs = container.filesystem
    table = container.config.storage.table

    if args.command == "init":
        create_schema(container.engine, table)
        print(f"table {table} ready")
    elif args.command == "check":
        resilience = container.config.resilience
        count = check_database(
            container.engine,
            table,
            retries=resilience.max_retries,
            backoff_base=resilience.backoff_base,
            backoff_cap=resilience.backoff_cap,
        )
        print(f"ok: {count} rows in {table}")
    elif args.command == "ls":
        for entry in fs.list_contents(args.directory, recursive=args.recursive):
            print(_format_entry(entry))
    elif args.command == "cat":
        sys.stdout.buffer.write(fs.read(args.path))
        sys.stdout.buffer.flush()
    elif args.command == "put":
        if args.source is None:
            fs.put_stream(args.path, sys.stdin.buffer)
        else:
            with args.source.open("rb") as handle:
                fs.put_stream(args.path, handle)
    elif args.command == "mkdir":
        fs.create_dir(args.path)
    elif args.command == "mv":
        fs.rename(args.path, args.new_path)
    elif args.command == "cp":
        fs.copy(args.path, args.new_path)
    elif args.command == "rm":
        if args.recursive:
            fs.delete_dir(args.path)
        else:
            fs.delete(args.path)
    elif args.command == "stat":
        for key, value in fs.get_metadata(args.path).items():
            print(f"{key}: {value}")
    return 0


def main(argv: Sequence[str] | None = None, container: Container | None = None) -> int:
    args = build_parser().parse_args(argv)
    container = container or Container()
    config = container.config
    log_file = str(config.log_file) if config.log_file else None
    setup_logging(args.log_level or config.log_level, log_file)
    try:
        with run_context(args.command):
            logger.debug(f"cli: start command={args.command}")
            try:
                return _run(args, container)
            except AppError as exc:
                logger.debug(f"cli: {args.command} failed code={exc.code}")
                print(f"error: {exc.code}", file=sys.stderr)
                return 1
    finally:
        container.dispose()


if __name__ == "__main__":
    sys.exit(main())
