#!/usr/bin/env python3
"""
Launcher Auth API -- operator command line.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 9001
  python main.py aggregate 3f786850e387550fdab836ed7e6dc881de23001b 89e6c98d92887913cadf06b2adb97f26cde4849b
  python main.py aggregate --file hashes.txt
  python main.py hash-password

aggregate prints the value a launcher must submit to POST /live/validate for
the given per-file hashes (already in filename order). Use it to check a
filehash table against a known-good install.

hash-password prints a bcrypt hash for the account.password column.

Environment variables: see core/config.py (JWT_KEY, PGHOST, ...).
"""

import argparse
import getpass
import sys
from pathlib import Path

from launcher.integrity import aggregate_digest


def _load_file(path: str) -> list[str]:
    """Read hashes from a file -- one per line, # comments and blank lines ignored.

    Resolves symlinks and verifies the path is a regular file before reading.
    """
    file_path = Path(path).resolve()
    if not file_path.is_file():
        print(f"  [!] '{path}' is not a readable file.", file=sys.stderr)
        return []
    try:
        lines = file_path.read_text().splitlines()
    except OSError as e:
        print(f"  [!] Could not read file '{path}': {e}", file=sys.stderr)
        return []
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port)
    return 0


def _cmd_aggregate(args: argparse.Namespace) -> int:
    hashes = list(args.hashes)
    if args.file:
        hashes.extend(_load_file(args.file))
    if not hashes:
        print("  [!] No hashes given.", file=sys.stderr)
        return 1
    print(aggregate_digest(hashes))
    return 0


def _cmd_hash_password(args: argparse.Namespace) -> int:
    from auth.credentials import hash_password

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat: "):
        print("  [!] Passwords do not match.", file=sys.stderr)
        return 1
    print(hash_password(password))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="launcherauth",
        description="Launcher Auth API -- login, file validation and game tokens for the launcher.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="localhost")
    serve.add_argument("--port", type=int, default=9001)
    serve.set_defaults(func=_cmd_serve)

    aggregate = sub.add_parser("aggregate", help="Print the aggregate file hash for a list of per-file hashes.")
    aggregate.add_argument("hashes", nargs="*", metavar="HASH", help="Per-file hashes in filename order.")
    aggregate.add_argument("--file", metavar="PATH", help="Read hashes from a file, one per line.")
    aggregate.set_defaults(func=_cmd_aggregate)

    hash_pw = sub.add_parser("hash-password", help="Print a bcrypt hash for the account.password column.")
    hash_pw.set_defaults(func=_cmd_hash_password)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
