"""Storefront management CLI.

Usage:
    python src/manage.py setup-db             # Create all tables
    python src/manage.py drop-db              # Drop all tables
    python src/manage.py reconcile-payments   # Poll the gateway for open payments
"""

import argparse
import sys


def _domain():
    from storefront.domain import storefront

    print("Initializing storefront domain...")
    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _domain()
    print("Creating storefront database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _domain()
    print("Dropping storefront database schema...")
    drop_db(domain)
    print("Done.")


def reconcile_payments():
    from storefront.payment.polling import reconcile_open_payments
    from storefront.utils.logging import configure_logging

    configure_logging()
    domain = _domain()
    with domain.domain_context():
        summary = reconcile_open_payments()
    print(f"Checked {summary['checked']}, updated {summary['updated']}, skipped {summary['skipped']}.")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("reconcile-payments", help="Reconcile open payments with the payment gateway")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "reconcile-payments":
        reconcile_payments()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
