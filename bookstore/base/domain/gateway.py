# (c) Nelen & Schuurmans

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Callable
from typing import List
from typing import TypeVar

from .exceptions import DoesNotExist
from .filter import Filter
from .types import Id
from .types import Json

__all__ = ["SyncGateway"]


T = TypeVar("T", bound="SyncGateway")


class SyncGateway:
    def filter(self, filters: List[Filter]) -> List[Json]:
        raise NotImplementedError()

    def count(self, filters: List[Filter]) -> int:
        return len(self.filter(filters))

    def exists(self, filters: List[Filter]) -> bool:
        return len(self.filter(filters)) > 0

    def get(self, id: Id) -> Json | None:
        result = self.filter([Filter.for_id(id)])
        return result[0] if result else None

    def add(self, item: Json) -> Json:
        raise NotImplementedError()

    def update(self, item: Json) -> Json:
        raise NotImplementedError()

    def update_transactional(self, id: Id, func: Callable[[Json], Json]) -> Json:
        with self.transaction() as transaction:
            existing = transaction.get(id)
            if existing is None:
                raise DoesNotExist("record", id)
            return transaction.update(func(existing))

    def upsert(self, item: Json) -> Json:
        try:
            return self.update(item)
        except DoesNotExist:
            return self.add(item)

    def remove(self, id: Id) -> bool:
        raise NotImplementedError()

    def remove_by(self, filters: List[Filter]) -> int:
        raise NotImplementedError()

    @contextmanager
    def transaction(self: T) -> Iterator[T]:
        """Everything done with the yielded gateway is one atomic unit."""
        yield self
