# (c) Nelen & Schuurmans

from typing import Any
from typing import Generic
from typing import List
from typing import Optional
from typing import Type
from typing import TypeVar

from bookstore.base.domain import Filter
from bookstore.base.domain import Id
from bookstore.base.domain import Json
from bookstore.base.domain import RootEntity
from bookstore.base.domain import SyncRepository

T = TypeVar("T", bound=RootEntity)

__all__ = ["SyncManage"]


class SyncManage(Generic[T]):
    repo: SyncRepository[T]
    entity: Type[T]

    def __init__(self, repo: Optional[SyncRepository[T]] = None):
        assert repo is not None
        self.repo = repo

    def __init_subclass__(cls) -> None:
        (base,) = cls.__orig_bases__  # type: ignore
        (entity,) = base.__args__
        assert issubclass(entity, RootEntity)
        super().__init_subclass__()
        cls.entity = entity

    def retrieve(self, id: Id) -> T:
        return self.repo.get(id)

    def create(self, values: Json) -> T:
        return self.repo.add(values)

    def update(self, id: Id, values: Json) -> T:
        return self.repo.update(id, values)

    def destroy(self, id: Id) -> bool:
        return self.repo.remove(id)

    def list(self) -> List[T]:
        return self.repo.all()

    def by(self, key: str, value: Any) -> List[T]:
        return self.repo.by(key, value)

    def filter(self, filters: List[Filter]) -> List[T]:
        return self.repo.filter(filters)

    def count(self, filters: List[Filter]) -> int:
        return self.repo.count(filters)

    def exists(self, filters: List[Filter]) -> bool:
        return self.repo.exists(filters)
