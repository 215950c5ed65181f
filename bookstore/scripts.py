"""Manage the database schema of the bookstore catalog."""
import argparse
import logging

from .config import DatabaseConfig
from .sql_model import metadata

logger = logging.getLogger(__name__)


def get_parser():
    """Return argument parser."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        default=False,
        help="Verbose output",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Database url (user:password@host:port/db), "
        "defaults to $BOOKSTORE_DATABASE_URL",
    )
    parser.add_argument(
        "command",
        choices=["init-db", "drop-db"],
        help="init-db creates the tables, drop-db drops them",
    )
    return parser


def get_config(options: argparse.Namespace) -> DatabaseConfig:
    config = DatabaseConfig.from_environ()
    if options.url:
        config = config.update(url=options.url)
    return config


def main(args=None):
    """Call main command with args from parser.

    This method is called when you run 'bookstore', this is configured in
    'pyproject.toml'.
    """
    options = get_parser().parse_args(args)
    if options.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    database = get_config(options).create_database()
    try:
        if options.command == "init-db":
            database.create_tables(metadata)
            logger.info("Created tables %s", ", ".join(metadata.tables))
        else:
            database.drop_tables(metadata)
            logger.info("Dropped tables %s", ", ".join(metadata.tables))
    except Exception:
        logger.exception("An exception has occurred.")
        return 1
    finally:
        database.dispose()
    return 0
