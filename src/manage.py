"""Shopfront database management CLI.

Provides commands to create and drop the database schema.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys

import structlog
from sqlalchemy.engine import make_url

from shared.config import get_settings
from shared.utils.db import drop_db, setup_db
from shared.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def setup_database():
    """Create every table that does not exist yet."""
    logger.info("schema_setup_started", database_url=_redacted_url())
    setup_db()
    print("Done.")


def drop_database():
    """Drop every table."""
    logger.info("schema_drop_started", database_url=_redacted_url())
    drop_db()
    print("Done.")


def _redacted_url() -> str:
    return make_url(get_settings().database_url).render_as_string(hide_password=True)


def main():
    parser = argparse.ArgumentParser(description="Shopfront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    args = parser.parse_args()
    configure_logging()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        if not args.yes and input("Drop all tables? [y/N] ").strip().lower() != "y":
            print("Aborted.")
            sys.exit(1)
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
