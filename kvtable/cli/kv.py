from __future__ import annotations

import argparse
import sqlite3
import sys
from pathlib import Path
from typing import Sequence

from kvtable.config.settings import settings
from kvtable.domain.errors import KVError
from kvtable.domain.value_objects.enums import ScalarKind
from kvtable.domain.value_objects.scalar import Scalar
from kvtable.logging_config import get_logger
from kvtable.repositories.collections import Binding, CollectionDescriptor

_KIND_CHOICES = [k.value for k in ScalarKind]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Typed key-value collections backed by SQLite")
    p.add_argument(
        "--db",
        default=str(settings.db_path),
        help="Path to SQLite DB file (default: %(default)s)",
    )
    p.add_argument(
        "--collection",
        default=settings.collection,
        help="Collection name (default: %(default)s)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the collection table if missing")

    p_set = sub.add_parser("set", help="Store a value under a new key")
    p_set.add_argument("key")
    p_set.add_argument("value")
    p_set.add_argument("--type", choices=_KIND_CHOICES, default=ScalarKind.TEXT.value)
    p_set.add_argument(
        "--replace", action="store_true", help="Overwrite the key if it already exists"
    )

    p_get = sub.add_parser("get", help="Print the value stored under a key")
    p_get.add_argument("key")
    p_get.add_argument("--type", choices=_KIND_CHOICES, default=ScalarKind.TEXT.value)

    p_rm = sub.add_parser("remove", help="Delete a key")
    p_rm.add_argument("key")
    return p


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _run(args: argparse.Namespace, conn: sqlite3.Connection) -> str:
    if args.command == "init":
        CollectionDescriptor(args.collection).materialize(conn).release()
        return f"Initialized collection: {args.collection}"

    binding: Binding
    with CollectionDescriptor.bind_existing(args.collection, conn) as binding:
        if args.command == "set":
            value = Scalar.of(args.value).coerce(args.type)
            if args.replace:
                binding.replace(args.key, value)
            else:
                binding.set(args.key, value)
            return f"Stored {args.key}"
        if args.command == "get":
            return _format_value(binding.get(args.key, args.type))
        affected = binding.remove(args.key)
        return f"Rows affected: {affected}"


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    get_logger(stream_level=settings.log_level)

    db_path = Path(args.db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as exc:
        print(f"error [500]: unable to open database {db_path}: {exc}", file=sys.stderr)
        return 1
    try:
        print(_run(args, conn))
    except KVError as exc:
        print(f"error [{exc.status_code}]: {exc.message}", file=sys.stderr)
        return 1
    finally:
        conn.close()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
