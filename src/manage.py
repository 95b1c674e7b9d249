"""Storefront database management CLI.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables

Uses DATABASE_URL; without it the in-memory provider is active and there
is nothing to create.
"""

import argparse
import sys


def _domain():
    from ordering.domain import ordering
    from ordering.utils.db import configure_database

    configure_database(ordering)
    ordering.init()
    return ordering


def setup_databases() -> int:
    from ordering.utils.db import setup_db

    print("Creating ordering database schema...")
    if not setup_db(_domain()):
        print("  No SQL database configured (set DATABASE_URL); nothing to do.")
        return 0
    print("  ordering schema ready.")
    return 0


def drop_databases() -> int:
    from ordering.utils.db import drop_db

    print("Dropping ordering database schema...")
    if not drop_db(_domain()):
        print("  No SQL database configured (set DATABASE_URL); nothing to do.")
        return 0
    print("  ordering schema dropped.")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        return setup_databases()
    return drop_databases()


if __name__ == "__main__":
    sys.exit(main())
