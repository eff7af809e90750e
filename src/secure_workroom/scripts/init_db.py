"""Create (or recreate) the schema directly from the ORM metadata.

Local development helper; deployed databases are managed with Alembic.
"""
from __future__ import annotations

import argparse
import logging

from secure_workroom.core.logging_config import configure_logging
from secure_workroom.core.settings import settings
from secure_workroom.db.session import create_tables, drop_tables

logger = logging.getLogger(__name__)


def init_db(reset: bool = False) -> None:
    """Initialize the database by creating all tables."""
    if reset:
        logger.warning("Dropping all tables in %s", settings.effective_database_url)
        drop_tables()
    create_tables()
    logger.info("Database initialized at %s", settings.effective_database_url)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args(argv)
    configure_logging()
    init_db(reset=args.reset)


if __name__ == "__main__":
    main()
