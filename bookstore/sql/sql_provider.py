from collections.abc import Iterator
from collections.abc import Sequence
from typing import Any

from sqlalchemy import MetaData
from sqlalchemy import text
from sqlalchemy.sql import Executable

from bookstore.base.domain import Json

__all__ = ["SyncSQLProvider", "SyncSQLDatabase"]


class SyncSQLProvider:
    def execute(
        self, query: Executable, bind_params: dict[str, Any] | None = None
    ) -> list[Json]:
        raise NotImplementedError()

    def transaction(self) -> Iterator["SyncSQLProvider"]:
        raise NotImplementedError()
        yield

    def testing_transaction(self) -> Iterator["SyncSQLProvider"]:
        raise NotImplementedError()
        yield


class SyncSQLDatabase(SyncSQLProvider):
    def execute_autocommit(self, query: Executable) -> None:
        pass

    def create_tables(self, metadata: MetaData) -> None:
        raise NotImplementedError()

    def drop_tables(self, metadata: MetaData) -> None:
        raise NotImplementedError()

    def truncate_tables(self, names: Sequence[str]) -> None:
        quoted = [f'"{x}"' for x in names]
        self.execute_autocommit(text(f"TRUNCATE TABLE {', '.join(quoted)}"))
