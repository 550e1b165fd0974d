"""Notifications database management CLI.

Creates and drops the notification schema and reports which optional
storage features the current schema supports.

Usage:
    python src/manage.py setup-db       # Create all tables
    python src/manage.py drop-db        # Drop all tables
    python src/manage.py capabilities   # Show subscription/dedupe support
"""

import argparse
import sys


def _domain():
    from notifications.domain import notifications

    notifications.init()
    return notifications


def setup_database():
    from notifications.utils.db import setup_db

    domain = _domain()
    print("Creating notifications database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from notifications.utils.db import drop_db

    domain = _domain()
    print("Dropping notifications database schema...")
    drop_db(domain)
    print("Done.")


def show_capabilities():
    from notifications.notification.capabilities import probe_capabilities

    domain = _domain()
    with domain.domain_context():
        capabilities = probe_capabilities()
    print(f"subscriptions: {'enabled' if capabilities.subscriptions else 'disabled'}")
    print(f"dedupe:        {'enabled' if capabilities.dedupe else 'disabled'}")


def main():
    parser = argparse.ArgumentParser(description="Notifications database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("capabilities", help="Show which optional storage features are available")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "capabilities":
        show_capabilities()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
