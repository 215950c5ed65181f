# (c) Nelen & Schuurmans

import os

import pytest

from bookstore.sql import SQLAlchemySyncSQLDatabase
from bookstore.sql_model import metadata


@pytest.fixture(scope="session")
def postgres_url():
    return os.environ.get("POSTGRES_URL", "postgres:postgres@localhost:5432")


@pytest.fixture(scope="session")
def postgres_db_url(postgres_url) -> str:
    from sqlalchemy import create_engine
    from sqlalchemy import text

    dbname = "bookstore_test"
    root_engine = create_engine(
        f"postgresql+psycopg2://{postgres_url}", isolation_level="AUTOCOMMIT"
    )
    with root_engine.connect() as connection:
        connection.execute(text(f"DROP DATABASE IF EXISTS {dbname}"))
        connection.execute(text(f"CREATE DATABASE {dbname}"))
    root_engine.dispose()

    engine = create_engine(
        f"postgresql+psycopg2://{postgres_url}/{dbname}", isolation_level="AUTOCOMMIT"
    )
    metadata.drop_all(engine)
    metadata.create_all(engine)
    engine.dispose()
    return f"{postgres_url}/{dbname}"


@pytest.fixture(scope="session")
def database(postgres_db_url):
    # pool_size=4 for the concurrency tests
    db = SQLAlchemySyncSQLDatabase(postgres_db_url, pool_size=4)
    yield db
    db.dispose()


@pytest.fixture
def database_with_cleanup(database):
    tables = list(metadata.tables)
    database.truncate_tables(tables)
    yield database
    database.truncate_tables(tables)


@pytest.fixture
def test_transaction(database):
    with database.testing_transaction() as test_transaction:
        yield test_transaction
