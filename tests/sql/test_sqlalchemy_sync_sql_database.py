from unittest import mock

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from bookstore import AlreadyExists
from bookstore import Conflict
from bookstore import ConstraintViolation
from bookstore.sql.sqlalchemy_sync_sql_database import SQLAlchemySyncSQLTransaction


class PgError(Exception):
    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


@pytest.fixture
def connection():
    return mock.Mock()


@pytest.fixture
def transaction(connection):
    return SQLAlchemySyncSQLTransaction(connection)


def db_error(message, pgcode):
    return DBAPIError("SELECT 1", None, PgError(message, pgcode))


def test_execute(transaction, connection):
    row = mock.Mock()
    row._asdict.return_value = {"id": 1}
    connection.execute.return_value.fetchall.return_value = [row]

    assert transaction.execute(text("SELECT 1")) == [{"id": 1}]


def test_serialization_failure(transaction, connection):
    connection.execute.side_effect = db_error(
        "could not serialize access due to concurrent update", "40001"
    )

    with pytest.raises(Conflict):
        transaction.execute(text("SELECT 1"))


def test_unique_violation(transaction, connection):
    connection.execute.side_effect = db_error(
        'duplicate key value violates unique constraint "book_title_key"\n'
        "DETAIL:  Key (title)=(Dune) already exists.\n",
        "23505",
    )

    with pytest.raises(AlreadyExists) as e:
        transaction.execute(text("SELECT 1"))

    assert e.value.key == "title"
    assert e.value.value == "Dune"


@pytest.mark.parametrize("pgcode", ["23502", "23503", "23514"])
def test_constraint_violation(transaction, connection, pgcode):
    connection.execute.side_effect = db_error("violates constraint\nDETAIL: x", pgcode)

    with pytest.raises(ConstraintViolation) as e:
        transaction.execute(text("SELECT 1"))

    assert str(e.value) == "violates constraint"


def test_other_error(transaction, connection):
    connection.execute.side_effect = db_error("syntax error", "42601")

    with pytest.raises(DBAPIError):
        transaction.execute(text("SELECT 1"))
