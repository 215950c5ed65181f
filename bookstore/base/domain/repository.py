# (c) Nelen & Schuurmans

from collections.abc import Iterable
from typing import Any
from typing import Generic
from typing import List
from typing import Optional
from typing import Type
from typing import TypeVar
from typing import Union

from .exceptions import DoesNotExist
from .filter import Filter
from .gateway import SyncGateway
from .root_entity import RootEntity
from .types import Id
from .types import Json

__all__ = ["SyncRepository"]

T = TypeVar("T", bound=RootEntity)


class SyncRepository(Generic[T]):
    entity: Type[T]

    def __init__(self, gateway: SyncGateway):
        self.gateway = gateway

    def __init_subclass__(cls) -> None:
        (base,) = cls.__orig_bases__  # type: ignore
        (entity,) = base.__args__
        super().__init_subclass__()
        cls.entity = entity

    def all(self) -> List[T]:
        return self.filter([])

    def by(self, key: str, value: Any) -> List[T]:
        return self.filter([Filter(field=key, values=[value])])

    def filter(self, filters: List[Filter]) -> List[T]:
        return [self.entity(**x) for x in self.gateway.filter(filters)]

    def all_by_id(self, ids: Iterable[Id]) -> List[T]:
        """Return the entities with the given ids; unknown ids are left out.

        Callers that need every id to resolve should compare lengths.
        """
        ids = list(ids)
        if not ids:
            return []
        return self.filter([Filter(field="id", values=ids)])

    def find(self, id: Id) -> Optional[T]:
        res = self.gateway.get(id)
        if res is None:
            return None
        return self.entity(**res)

    def get(self, id: Id) -> T:
        res = self.find(id)
        if res is None:
            raise DoesNotExist(self.entity.__name__.lower(), id)
        return res

    def add(self, item: Union[T, Json]) -> T:
        if isinstance(item, dict):
            item = self.entity.create(**item)
        created = self.gateway.add(item.model_dump())
        return self.entity(**created)

    def save(self, item: T) -> T:
        if item.id is None:
            return self.add(item)
        return self.upsert(item)

    def update(self, id: Id, values: Json) -> T:
        if not values:
            return self.get(id)
        updated = self.gateway.update_transactional(
            id, lambda x: self.entity(**x).update(**values).model_dump()
        )
        return self.entity(**updated)

    def upsert(self, item: T) -> T:
        upserted = self.gateway.upsert(item.model_dump())
        return self.entity(**upserted)

    def remove(self, id: Id) -> bool:
        return self.gateway.remove(id)

    def count(self, filters: List[Filter]) -> int:
        return self.gateway.count(filters)

    def exists(self, filters: List[Filter]) -> bool:
        return self.gateway.exists(filters)
