# (c) Nelen & Schuurmans

from typing import TypeVar

from .exceptions import BadRequest
from .types import Id
from .value_object import ValueObject

__all__ = ["RootEntity"]


T = TypeVar("T", bound="RootEntity")


class RootEntity(ValueObject):
    """An entity with an identity.

    The id is None until the entity is stored; the store assigns it. Once
    assigned, two entities of the same class are equal if their ids are equal.
    """

    id: Id | None = None

    def update(self: T, **values) -> T:
        if "id" in values and self.id is not None and values["id"] != self.id:
            raise BadRequest("Cannot change the id of an entity")
        return super().update(**values)

    def __eq__(self, other):
        if isinstance(other, RootEntity) and None not in (self.id, other.id):
            return self.__class__ is other.__class__ and self.id == other.id
        return super().__eq__(other)

    def __hash__(self):
        if self.id is None:
            return super().__hash__()
        return hash(self.__class__) + hash(self.id)
