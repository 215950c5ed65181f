# (c) Nelen & Schuurmans

import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from copy import deepcopy
from typing import Any
from typing import List
from typing import Type
from typing import TypeVar

from sqlalchemy import MetaData
from sqlalchemy import Table

from bookstore.base.domain import AlreadyExists
from bookstore.base.domain import ConstraintViolation
from bookstore.base.domain import Filter
from bookstore.base.domain import Id
from bookstore.base.domain import Json

from .table_gateway import TableSyncGateway

__all__ = ["InMemorySyncDatabase", "InMemorySyncGateway"]


G = TypeVar("G", bound=TableSyncGateway)


def _coerce(table: Table, field: str, value: Any) -> Any:
    # filter values are converted to the column type, like SQL does
    if value is None or field not in table.columns:
        return value
    try:
        python_type = table.columns[field].type.python_type
    except NotImplementedError:
        return value
    if isinstance(value, python_type):
        return value
    try:
        return python_type(value)
    except (TypeError, ValueError):
        return value


def _matches(table: Table, row: Json, filters: List[Filter]) -> bool:
    return all(
        row.get(x.field) in [_coerce(table, x.field, v) for v in x.values]
        for x in filters
    )


def _primary_key(table: Table, row: Json) -> tuple:
    return tuple(row.get(x.name) for x in table.primary_key.columns)


class InMemorySyncDatabase:
    """For testing purposes

    Keeps the rows of the tables in `metadata` in memory. Primary key, unique,
    not null and foreign key constraints of the table definitions are enforced,
    including ON DELETE CASCADE. A transaction takes a snapshot of all tables and
    restores it when an exception is raised; transactions are serialized.
    """

    def __init__(self, metadata: MetaData):
        self.metadata = metadata
        self.tables: dict[str, dict[tuple, Json]] = {x: {} for x in metadata.tables}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator["InMemorySyncDatabase"]:
        with self._lock:
            snapshot = deepcopy(self.tables)
            try:
                yield self
            except BaseException:
                self.tables = snapshot
                raise

    def select(self, table: Table, filters: List[Filter]) -> List[Json]:
        with self._lock:
            return [
                deepcopy(x)
                for x in self.tables[table.name].values()
                if _matches(table, x, filters)
            ]

    def insert(self, table: Table, item: Json) -> Json:
        row = {x.name: item.get(x.name) for x in table.columns}
        key = _primary_key(table, row)
        with self.transaction():
            if key in self.tables[table.name]:
                pk = ", ".join(x.name for x in table.primary_key.columns)
                raise AlreadyExists(", ".join(str(x) for x in key), key=pk)
            self._check(table, row, key)
            self.tables[table.name][key] = row
        return deepcopy(row)

    def update(self, table: Table, filters: List[Filter], item: Json) -> List[Json]:
        values = {k: v for (k, v) in item.items() if k in table.columns}
        result = []
        with self.transaction():
            for row in self.select(table, filters):
                key = _primary_key(table, row)
                row.update(values)
                if _primary_key(table, row) != key:
                    raise ConstraintViolation("cannot change the primary key")
                self._check(table, row, key)
                self.tables[table.name][key] = row
                result.append(deepcopy(row))
        return result

    def delete(self, table: Table, filters: List[Filter]) -> List[Json]:
        with self.transaction():
            result = self.select(table, filters)
            for row in result:
                del self.tables[table.name][_primary_key(table, row)]
                self._on_delete(table, row)
        return result

    def _check(self, table: Table, row: Json, key: tuple) -> None:
        for column in table.columns:
            value = row[column.name]
            if value is None:
                if not column.nullable:
                    raise ConstraintViolation(
                        f'null value in column "{column.name}" of relation '
                        f'"{table.name}" violates not-null constraint'
                    )
                continue
            if column.unique:
                for other_key, other in self.tables[table.name].items():
                    if other_key != key and other[column.name] == value:
                        raise AlreadyExists(value, key=column.name)
            for fk in column.foreign_keys:
                target = fk.column
                if not any(
                    x[target.name] == value
                    for x in self.tables[target.table.name].values()
                ):
                    raise ConstraintViolation(
                        f'insert or update on table "{table.name}" violates '
                        f'foreign key constraint on "{column.name}"'
                    )

    def _on_delete(self, table: Table, row: Json) -> None:
        for other in self.metadata.tables.values():
            for fk in other.foreign_keys:
                if fk.column.table is not table:
                    continue
                filters = [Filter(field=fk.parent.name, values=[row[fk.column.name]])]
                if (fk.ondelete or "").upper() == "CASCADE":
                    self.delete(other, filters)
                elif self.select(other, filters):
                    raise ConstraintViolation(
                        f'update or delete on table "{table.name}" violates '
                        f'foreign key constraint on table "{other.name}"'
                    )


class InMemorySyncGateway(TableSyncGateway):
    """For testing purposes"""

    def __init__(self, database: InMemorySyncDatabase):
        self.database = database

    @property
    def data(self) -> dict[tuple, Json]:
        return self.database.tables[self.table.name]

    @contextmanager
    def transaction(self: G) -> Iterator[G]:  # type: ignore
        with self.database.transaction():
            yield self

    def sibling(self, gateway_cls: Type[G]) -> G:
        return gateway_cls(self.database)  # type: ignore

    def _select(self, filters: List[Filter]) -> List[Json]:
        return [
            self.mapper.to_internal(x)
            for x in self.database.select(self.table, filters)
        ]

    def _insert(self, row: Json) -> Json:
        # the store generates ids (like SQL does)
        if "id" in self.table.columns and row.get("id") is None:
            row = {**row, "id": uuid.uuid4()}
        return self.mapper.to_internal(self.database.insert(self.table, row))

    def _update(self, id: Id, row: Json) -> Json | None:
        result = self.database.update(self.table, [Filter.for_id(id)], row)
        return self.mapper.to_internal(result[0]) if result else None

    def _upsert(self, row: Json) -> Json:
        with self.transaction():
            return self._update(row["id"], row) or self._insert(row)

    def _delete(self, filters: List[Filter]) -> List[Json]:
        return self.database.delete(self.table, filters)
