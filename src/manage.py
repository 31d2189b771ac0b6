"""Storefront database management CLI.

Creates and drops the storefront schema on SQL providers. With the default
in-memory provider both commands are no-ops.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py stats      # Print order statistics
"""

import argparse
import json
import sys


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    domain = _domain()
    print("Creating storefront database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    domain = _domain()
    print("Dropping storefront database schema...")
    drop_db(domain)
    print("Done.")


def print_stats(date_from=None, date_to=None):
    from storefront.order.service import OrderService

    domain = _domain()
    with domain.domain_context():
        stats = OrderService().get_stats(date_from=date_from, date_to=date_to)
    print(json.dumps(stats.__dict__, indent=2))


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    stats_parser = subparsers.add_parser("stats", help="Print order statistics")
    stats_parser.add_argument("--from", dest="date_from", help="ISO date, inclusive")
    stats_parser.add_argument("--to", dest="date_to", help="ISO date, inclusive")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "stats":
        from datetime import date

        print_stats(
            date_from=date.fromisoformat(args.date_from) if args.date_from else None,
            date_to=date.fromisoformat(args.date_to) if args.date_to else None,
        )
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
