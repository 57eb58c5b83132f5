"""Generate a bcrypt hash for the users file.

Usage:
    python -m sales_api.scripts.hash_password [--rounds 10] [--username admin]

The password is read from the terminal without echo (or from stdin when piped).
With ``--username`` a ready-to-paste users-file entry is printed instead of
the bare hash.
"""

from __future__ import annotations

import argparse
import getpass
import json
import sys

from sales_api.core.credentials import hash_password


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hash a password with bcrypt for users.json.")
    parser.add_argument("--rounds", type=int, default=10, help="bcrypt cost factor (default: 10)")
    parser.add_argument("--username", help="emit a users.json entry for this username")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if sys.stdin.isatty():
        password = getpass.getpass("Password: ")
    else:
        password = sys.stdin.readline().rstrip("\n")

    if not password:
        print("error: empty password", file=sys.stderr)
        return 1
    if len(password.encode("utf-8")) > 72:
        print("error: bcrypt only uses the first 72 bytes of a password", file=sys.stderr)
        return 1

    hashed = hash_password(password, rounds=args.rounds)
    if args.username:
        print(json.dumps({"username": args.username, "password": hashed}))
    else:
        print(hashed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
