import logging
import os
from collections.abc import Mapping
from typing import Optional

import inject

from bookstore.base.domain import ValueObject
from bookstore.sql import SQLAlchemySyncSQLDatabase
from bookstore.sql import SyncSQLDatabase

__all__ = ["DatabaseConfig", "configure"]

logger = logging.getLogger(__name__)


DEFAULT_URL = "postgres:postgres@localhost:5432/bookstore"


class DatabaseConfig(ValueObject):
    url: str = DEFAULT_URL
    pool_size: int = 5
    isolation_level: str = "REPEATABLE READ"

    @classmethod
    def from_environ(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "DatabaseConfig":
        """Read BOOKSTORE_DATABASE_URL and BOOKSTORE_DATABASE_POOL_SIZE."""
        if environ is None:
            environ = os.environ
        values = {}
        if "BOOKSTORE_DATABASE_URL" in environ:
            values["url"] = environ["BOOKSTORE_DATABASE_URL"]
        if "BOOKSTORE_DATABASE_POOL_SIZE" in environ:
            values["pool_size"] = environ["BOOKSTORE_DATABASE_POOL_SIZE"]
        return cls.create(**values)

    def create_database(self) -> SQLAlchemySyncSQLDatabase:
        return SQLAlchemySyncSQLDatabase(
            self.url, pool_size=self.pool_size, isolation_level=self.isolation_level
        )


def configure(config: Optional[DatabaseConfig] = None) -> SQLAlchemySyncSQLDatabase:
    """Bind the database, so that gateways without an explicit provider use it."""
    if config is None:
        config = DatabaseConfig.from_environ()
    database = config.create_database()

    def bootstrap(binder: inject.Binder) -> None:
        binder.bind(SyncSQLDatabase, database)

    inject.clear_and_configure(bootstrap)
    logger.info("Configured database %s", database.engine.url)
    return database
