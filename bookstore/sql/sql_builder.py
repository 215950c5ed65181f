from sqlalchemy import and_
from sqlalchemy import delete
from sqlalchemy import Executable
from sqlalchemy import func
from sqlalchemy import select
from sqlalchemy import Table
from sqlalchemy import true
from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.sql.expression import ColumnElement
from sqlalchemy.sql.expression import false

from bookstore.base.domain import Filter
from bookstore.base.domain import Id
from bookstore.base.domain import Json

__all__ = ["SQLBuilder"]


class SQLBuilder:
    def __init__(self, table: Table):
        self.table = table

    def _filter_to_sql(self, filter: Filter) -> ColumnElement:
        try:
            column = getattr(self.table.c, filter.field)
        except AttributeError:
            return false()
        if len(filter.values) == 0:
            return false()
        elif len(filter.values) == 1:
            return column == filter.values[0]
        else:
            return column.in_(filter.values)

    def _filters_to_sql(self, filters: list[Filter]) -> ColumnElement:
        return and_(*[self._filter_to_sql(x) for x in filters])

    def _id_filter_to_sql(self, id: Id) -> ColumnElement:
        return self._filters_to_sql([Filter.for_id(id)])

    def _sanitize_item(self, item: Json) -> Json:
        known = {c.key for c in self.table.c}
        result = {k: item[k] for k in item.keys() if k in known}
        if "id" in result and result["id"] is None:
            del result["id"]
        return result

    def select(self, filters: list[Filter], for_update: bool = False) -> Executable:
        query = select(self.table)
        if for_update:
            query = query.with_for_update()
        return query.where(self._filters_to_sql(filters))

    def insert(self, item: Json) -> Executable:
        return (
            insert(self.table).values(**self._sanitize_item(item)).returning(self.table)
        )

    def upsert(self, item: Json) -> Executable:
        item = self._sanitize_item(item)
        return (
            insert(self.table)
            .values(**item)
            .on_conflict_do_update(index_elements=["id"], set_=item)
            .returning(self.table)
        )

    def update(self, id: Id, item: Json) -> Executable:
        return (
            update(self.table)
            .where(self._id_filter_to_sql(id))
            .values(**self._sanitize_item(item))
            .returning(self.table)
        )

    def delete(self, filters: list[Filter]) -> Executable:
        return (
            delete(self.table)
            .where(self._filters_to_sql(filters))
            .returning(*self.table.primary_key.columns)
        )

    def count(self, filters: list[Filter]) -> Executable:
        return (
            select(func.count().label("count"))
            .select_from(self.table)
            .where(self._filters_to_sql(filters))
        )

    def exists(self, filters: list[Filter]) -> Executable:
        return (
            select(true().label("exists"))
            .select_from(self.table)
            .where(self._filters_to_sql(filters))
            .limit(1)
        )
