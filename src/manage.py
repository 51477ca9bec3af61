"""Storefront management CLI.

Usage:
    python src/manage.py setup-db         # Create tables for relational providers
    python src/manage.py drop-db          # Drop them
    python src/manage.py complete-orders  # Complete orders delivered long enough ago
"""

import argparse
import sys


def setup_database():
    from storefront.domain import storefront
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront.init()
    touched = setup_db(storefront)
    print(f"  Schema ready for providers: {', '.join(touched) or 'none (no relational provider configured)'}")


def drop_database():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront.init()
    touched = drop_db(storefront)
    print(f"  Schema dropped for providers: {', '.join(touched) or 'none'}")


def complete_orders(older_than_days=None):
    from storefront.domain import storefront
    from storefront.order.completion import CompleteDeliveredOrders

    storefront.init()
    with storefront.domain_context():
        completed = storefront.process(CompleteDeliveredOrders(older_than_days=older_than_days), asynchronous=False)
    print(f"Completed {completed} order(s).")


def main():
    from storefront.utils.logging import configure_logging

    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    complete_parser = subparsers.add_parser("complete-orders", help="Complete delivered orders past the threshold")
    complete_parser.add_argument(
        "--older-than-days",
        type=int,
        default=None,
        help="Override STOREFRONT_AUTO_COMPLETE_DAYS",
    )

    args = parser.parse_args()
    configure_logging()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "complete-orders":
        complete_orders(args.older_than_days)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
