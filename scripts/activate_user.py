#!/usr/bin/env python3
"""
Mark an account as verified without going through the activation e-mail.

Usage:
  python scripts/activate_user.py --email john.doe@example.com
  python scripts/activate_user.py --list-pending
"""
from __future__ import annotations

import argparse
import sys

from farwell.db.create_tables import create_all
from farwell.repositories.sql_repository import SQLRepository


def main() -> None:
    ap = argparse.ArgumentParser(description="Activate a Farwell account")
    group = ap.add_mutually_exclusive_group(required=True)
    group.add_argument("--email", help="E-mail of the account to activate")
    group.add_argument("--list-pending", action="store_true", help="List accounts still waiting for activation")
    args = ap.parse_args()

    create_all()
    repo = SQLRepository()
    if args.list_pending:
        pending = [user for user in repo.list_users() if not user.is_activated]
        for user in pending:
            print(f"{user.id}\t{user.email}\t{user.name}")
        print(f"{len(pending)} pending account(s)")
        return

    user = repo.get_user_by_email(args.email)
    if not user:
        raise SystemExit(f"No account for '{args.email}'")
    if user.is_activated:
        print(f"Account {user.email} is already active")
        return
    repo.mark_user_verified(user.id)
    print(f"OK: {user.email} activated")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
