# (c) Nelen & Schuurmans
from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Type
from typing import TypeVar

import inject
from sqlalchemy.sql import Executable

from bookstore.base.domain import DoesNotExist
from bookstore.base.domain import Filter
from bookstore.base.domain import Id
from bookstore.base.domain import Json
from bookstore.base.infrastructure import TableSyncGateway

from .sql_builder import SQLBuilder
from .sql_provider import SyncSQLDatabase
from .sql_provider import SyncSQLProvider

__all__ = ["SyncSQLGateway"]


T = TypeVar("T", bound="SyncSQLGateway")
G = TypeVar("G", bound=TableSyncGateway)


class SyncSQLGateway(TableSyncGateway):
    def __init__(
        self,
        provider_override: SyncSQLProvider | None = None,
        nested: bool = False,
    ):
        self.provider_override = provider_override
        self.nested = nested
        self.builder = SQLBuilder(self.table)

    @property
    def provider(self):
        return self.provider_override or inject.instance(SyncSQLDatabase)

    @contextmanager
    def transaction(self: T) -> Iterator[T]:  # type: ignore
        if self.nested:
            yield self
        else:
            with self.provider.transaction() as provider:
                yield self.__class__(provider, nested=True)

    def sibling(self, gateway_cls: Type[G]) -> G:
        return gateway_cls(self.provider, nested=self.nested)  # type: ignore

    def execute(self, query: Executable) -> list[Json]:
        return [self.mapper.to_internal(x) for x in self.provider.execute(query)]

    def _select(self, filters: list[Filter]) -> list[Json]:
        return self.execute(self.builder.select(filters))

    def _insert(self, row: Json) -> Json:
        (result,) = self.execute(self.builder.insert(row))
        return result

    def _update(self, id: Id, row: Json) -> Json | None:
        result = self.execute(self.builder.update(id, row))
        assert len(result) <= 1
        return result[0] if result else None

    def _upsert(self, row: Json) -> Json:
        (result,) = self.execute(self.builder.upsert(row))
        return result

    def _delete(self, filters: list[Filter]) -> list[Json]:
        return self.provider.execute(self.builder.delete(filters))

    def _select_for_update(self, id: Id) -> Json | None:
        with self.transaction() as transaction:
            result = transaction.execute(
                self.builder.select([Filter.for_id(id)], for_update=True)
            )
            if result:
                transaction.get_related(result)
        return result[0] if result else None

    def update_transactional(self, id: Id, func: Callable[[Json], Json]) -> Json:
        with self.transaction() as transaction:
            existing = transaction._select_for_update(id)
            if existing is None:
                raise DoesNotExist("record", id)
            return transaction.update(func(existing))

    def count(self, filters: list[Filter]) -> int:
        (row,) = self.provider.execute(self.builder.count(filters))
        return row["count"]

    def exists(self, filters: list[Filter]) -> bool:
        return len(self.provider.execute(self.builder.exists(filters))) > 0
