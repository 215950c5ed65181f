import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy import MetaData
from sqlalchemy.engine import Connection
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.sql import Executable

from bookstore.base.domain import AlreadyExists
from bookstore.base.domain import Conflict
from bookstore.base.domain import ConstraintViolation
from bookstore.base.domain import Json

from .sql_provider import SyncSQLDatabase
from .sql_provider import SyncSQLProvider

__all__ = ["SQLAlchemySyncSQLDatabase"]

logger = logging.getLogger(__name__)


UNIQUE_VIOLATION_DETAIL_REGEX = re.compile(
    r"DETAIL:\s*Key\s\((?P<key>.*)\)=\((?P<value>.*)\)\s+already exists"
)

# https://www.postgresql.org/docs/current/errcodes-appendix.html
SERIALIZATION_FAILURE = "40001"
UNIQUE_VIOLATION = "23505"
INTEGRITY_VIOLATIONS = {
    "23502": "not_null_violation",
    "23503": "foreign_key_violation",
    "23514": "check_violation",
}


def _pgcode(e: DBAPIError) -> str | None:
    return getattr(e.orig, "pgcode", None)


def maybe_raise_conflict(e: DBAPIError) -> None:
    if _pgcode(e) == SERIALIZATION_FAILURE:
        raise Conflict("could not execute query due to concurrent update")


def maybe_raise_already_exists(e: DBAPIError) -> None:
    if _pgcode(e) == UNIQUE_VIOLATION:
        lines = e.orig.args[0].split("\n")
        if len(lines) <= 1:
            raise AlreadyExists()
        match = UNIQUE_VIOLATION_DETAIL_REGEX.match(lines[1])
        if match:
            raise AlreadyExists(key=match["key"], value=match["value"])
        else:
            raise AlreadyExists()


def maybe_raise_constraint_violation(e: DBAPIError) -> None:
    if _pgcode(e) in INTEGRITY_VIOLATIONS:
        raise ConstraintViolation(e.orig.args[0].split("\n")[0])


class SQLAlchemySyncSQLDatabase(SyncSQLDatabase):
    engine: Engine

    def __init__(self, url: str, **kwargs):
        kwargs.setdefault("isolation_level", "REPEATABLE READ")
        self.url = url
        self.engine = create_engine(f"postgresql://{url}", **kwargs)
        logger.debug("Created engine for %s", self.engine.url)

    def dispose(self) -> None:
        self.engine.dispose()

    def execute(
        self, query: Executable, bind_params: dict[str, Any] | None = None
    ) -> list[Json]:
        with self.transaction() as transaction:
            return transaction.execute(query, bind_params)

    @contextmanager
    def transaction(self) -> Iterator[SyncSQLProvider]:  # type: ignore
        with self.engine.connect() as connection:
            with connection.begin():
                yield SQLAlchemySyncSQLTransaction(connection)

    @contextmanager
    def testing_transaction(self) -> Iterator[SyncSQLProvider]:  # type: ignore
        with self.engine.connect() as connection:
            with connection.begin() as transaction:
                yield SQLAlchemySyncSQLTransaction(connection)
                transaction.rollback()

    def execute_autocommit(self, query: Executable) -> None:
        engine = create_engine(f"postgresql://{self.url}", isolation_level="AUTOCOMMIT")
        with engine.connect() as connection:
            connection.execute(query)
        engine.dispose()

    def create_tables(self, metadata: MetaData) -> None:
        metadata.create_all(self.engine)

    def drop_tables(self, metadata: MetaData) -> None:
        metadata.drop_all(self.engine)


class SQLAlchemySyncSQLTransaction(SyncSQLProvider):
    def __init__(self, connection: Connection):
        self.connection = connection

    def execute(
        self, query: Executable, bind_params: dict[str, Any] | None = None
    ) -> list[Json]:
        try:
            result = self.connection.execute(query, bind_params)
        except DBAPIError as e:
            maybe_raise_conflict(e)
            maybe_raise_already_exists(e)
            maybe_raise_constraint_violation(e)
            raise e
        # _asdict() is a documented method of a NamedTuple
        # https://docs.python.org/3/library/collections.html#collections.somenamedtuple._asdict
        return [x._asdict() for x in result.fetchall()]

    @contextmanager
    def transaction(self) -> Iterator[SyncSQLProvider]:  # type: ignore
        with self.connection.begin_nested():
            yield self
