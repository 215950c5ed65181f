# (c) Nelen & Schuurmans

from typing import List
from typing import Type
from typing import TypeVar

from sqlalchemy import Table

from bookstore.base.domain import DoesNotExist
from bookstore.base.domain import Filter
from bookstore.base.domain import Id
from bookstore.base.domain import Json
from bookstore.base.domain import SyncGateway

from .mapper import Mapper

__all__ = ["TableSyncGateway"]


G = TypeVar("G", bound="TableSyncGateway")


class TableSyncGateway(SyncGateway):
    """A gateway to one table of a relational store.

    Subclasses bind the table with a class keyword:

    >>> class WriterGateway(SomeTableSyncGateway, table=writer):
    ...     pass

    With ``has_related=True`` every read, write and delete runs in one transaction
    together with the ``get_related``, ``set_related`` and ``remove_related`` hooks,
    so that nested records are read and written consistently.

    Implementations provide the row level primitives (``_select``, ``_insert``,
    ``_update``, ``_upsert`` and ``_delete``), ``transaction`` and ``sibling``.
    """

    table: Table
    has_related: bool = False
    mapper: Mapper = Mapper()

    def __init_subclass__(
        cls, table: Table | None = None, has_related: bool = False, **kwargs
    ) -> None:
        if table is not None:
            cls.table = table
            cls.has_related = has_related
        super().__init_subclass__(**kwargs)

    def sibling(self, gateway_cls: Type[G]) -> G:
        """Return a gateway to another table that shares the current transaction."""
        raise NotImplementedError()

    def _select(self, filters: List[Filter]) -> List[Json]:
        raise NotImplementedError()

    def _insert(self, row: Json) -> Json:
        raise NotImplementedError()

    def _update(self, id: Id, row: Json) -> Json | None:
        raise NotImplementedError()

    def _upsert(self, row: Json) -> Json:
        raise NotImplementedError()

    def _delete(self, filters: List[Filter]) -> List[Json]:
        raise NotImplementedError()

    def get_related(self, items: List[Json]) -> None:
        """Implement this to use transactions for consistently getting nested records"""

    def set_related(self, item: Json, result: Json) -> None:
        """Implement this to use transactions for consistently setting nested records"""

    def remove_related(self, id: Id) -> None:
        """Implement this to use transactions for consistently removing nested records"""

    def filter(self, filters: List[Filter]) -> List[Json]:
        if self.has_related:
            with self.transaction() as transaction:
                result = transaction._select(filters)
                transaction.get_related(result)
        else:
            result = self._select(filters)
        return result

    def add(self, item: Json) -> Json:
        row = self.mapper.to_external(item)
        if self.has_related:
            with self.transaction() as transaction:
                result = transaction._insert(row)
                transaction.set_related(item, result)
        else:
            result = self._insert(row)
        return result

    def update(self, item: Json) -> Json:
        id_ = item.get("id")
        if id_ is None:
            raise DoesNotExist("record", id_)
        row = self.mapper.to_external(item)
        if self.has_related:
            with self.transaction() as transaction:
                result = transaction._update(id_, row)
                if result is not None:
                    transaction.set_related(item, result)
        else:
            result = self._update(id_, row)
        if result is None:
            raise DoesNotExist("record", id_)
        return result

    def upsert(self, item: Json) -> Json:
        if item.get("id") is None:
            return self.add(item)
        row = self.mapper.to_external(item)
        if self.has_related:
            with self.transaction() as transaction:
                result = transaction._upsert(row)
                transaction.set_related(item, result)
        else:
            result = self._upsert(row)
        return result

    def remove(self, id: Id) -> bool:
        if self.has_related:
            with self.transaction() as transaction:
                transaction.remove_related(id)
                return bool(transaction._delete([Filter.for_id(id)]))
        return bool(self._delete([Filter.for_id(id)]))

    def remove_by(self, filters: List[Filter]) -> int:
        return len(self._delete(filters))

    def _get_related_one_to_one(
        self, items: List[Json], field_name: str, fk_name: str
    ) -> None:
        """Fetch the record owned by each of `items` and add it inplace.

        Items without an owned record get None.

        Example:
            A book owns one review; the review refers to the book with "book_id".

            >>> books = [{"id": 2, "title": "Dune"}]
            >>> ReviewGateway(...)._get_related_one_to_one(books, "review", "book_id")
            >>> books[0]
            {"id": 2, "title": "Dune", "review": {"id": 7, "comment": "Great", "book_id": 2}}
        """
        for x in items:
            x[field_name] = None
        item_lut = {x["id"]: x for x in items}
        if not item_lut:
            return
        for related_obj in self.filter(
            [Filter(field=fk_name, values=list(item_lut.keys()))]
        ):
            item_lut[related_obj[fk_name]][field_name] = related_obj

    def _set_related_one_to_one(
        self, item: Json, result: Json, field_name: str, fk_name: str
    ) -> None:
        """Set (add / update / replace / remove) the record owned by `item`.

        Nothing happens if `item` does not contain `field_name`.
        """
        if field_name not in item:
            return
        current = self.filter([Filter(field=fk_name, values=[result["id"]])])
        existing = current[0] if current else None
        new_value = item[field_name]
        if new_value is None:
            if existing is not None:
                self.remove(existing["id"])
            result[field_name] = None
            return
        new_value = {**new_value, fk_name: result["id"]}
        if existing is not None and existing["id"] == new_value.get("id"):
            if existing != new_value:
                existing = self.update(new_value)
            result[field_name] = existing
            return
        if existing is not None:
            self.remove(existing["id"])
        result[field_name] = self.add(new_value)

    def _get_related_many_to_one(
        self, items: List[Json], field_name: str, fk_name: str
    ) -> None:
        """Replace the foreign key `fk_name` in each of `items` by the referred record.

        Example:
            >>> books = [{"id": 2, "publisher_id": 5}]
            >>> PublisherGateway(...)._get_related_many_to_one(books, "publisher", "publisher_id")
            >>> books[0]
            {"id": 2, "publisher": {"id": 5, "name": "Ace"}}
        """
        ids = {x[fk_name] for x in items if x.get(fk_name) is not None}
        lut = {}
        if ids:
            for related_obj in self.filter([Filter(field="id", values=list(ids))]):
                lut[related_obj["id"]] = related_obj
        for x in items:
            x[field_name] = lut.get(x.pop(fk_name, None))

    def _get_related_many_to_many(
        self,
        items: List[Json],
        field_name: str,
        link_gateway: "TableSyncGateway",
        fk_name: str,
        other_fk_name: str,
    ) -> None:
        """Fetch the records linked to `items` through `link_gateway` and add them.

        Args:
            items: The items for which to fetch related objects. Changed inplace.
            field_name: The key in item to put the list of related objects into.
            link_gateway: Gateway to the association table.
            fk_name: The column of the association table that refers to item["id"].
            other_fk_name: The column of the association table that refers to self.
        """
        for x in items:
            x[field_name] = []
        item_lut = {x["id"]: x for x in items}
        if not item_lut:
            return
        links = link_gateway.filter([Filter(field=fk_name, values=list(item_lut))])
        if not links:
            return
        other_ids = list({x[other_fk_name] for x in links})
        other_lut = {
            x["id"]: x for x in self.filter([Filter(field="id", values=other_ids)])
        }
        for link in links:
            item_lut[link[fk_name]][field_name].append(other_lut[link[other_fk_name]])

    def _set_related_many_to_many(
        self,
        item: Json,
        result: Json,
        field_name: str,
        fk_name: str,
        other_fk_name: str,
    ) -> None:
        """Synchronize the association rows (on self) of `item` with item[field_name].

        Only association rows are added and removed, the linked records themselves
        are never written. Nothing happens if `item` does not contain `field_name`.
        """
        if field_name not in item:
            return
        existing = {
            x[other_fk_name]
            for x in self.filter([Filter(field=fk_name, values=[result["id"]])])
        }
        wanted = {x["id"] for x in item[field_name] or []}
        for other_id in sorted(wanted - existing, key=str):
            self.add({fk_name: result["id"], other_fk_name: other_id})
        to_remove = sorted(existing - wanted, key=str)
        if to_remove:
            self.remove_by(
                [
                    Filter(field=fk_name, values=[result["id"]]),
                    Filter(field=other_fk_name, values=to_remove),
                ]
            )
