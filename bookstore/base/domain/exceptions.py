# (c) Nelen & Schuurmans

from pydantic import create_model
from pydantic import ValidationError
from pydantic_core import ErrorDetails

from .types import Id

__all__ = [
    "AlreadyExists",
    "BadRequest",
    "Conflict",
    "ConstraintViolation",
    "DoesNotExist",
    "ReferenceNotFound",
]


class DoesNotExist(Exception):
    def __init__(self, name: str, id: Id | None = None):
        super().__init__()
        self.name = name
        self.id = id

    def __str__(self):
        if self.id:
            return f"does not exist: {self.name} with id={self.id}"
        else:
            return f"does not exist: {self.name}"


class ReferenceNotFound(DoesNotExist):
    """A record refers to one or more records that do not exist."""

    def __init__(self, name: str, *ids: Id):
        super().__init__(name, ids[0] if len(ids) == 1 else None)
        self.ids = ids

    def __str__(self):
        ids = ", ".join(str(x) for x in self.ids)
        return f"reference not found: {self.name} with id={ids}"


class ConstraintViolation(Exception):
    def __init__(self, msg: str | None = None):
        super().__init__(msg)


class AlreadyExists(ConstraintViolation):
    def __init__(self, value: object = None, key: str = "id"):
        super().__init__(f"record with {key}={value} already exists")
        self.key = key
        self.value = value


class Conflict(Exception):
    def __init__(self, msg: str | None = None):
        super().__init__(msg)


# pydantic.ValidationError needs some model; for us it doesn't matter
request_model = create_model("Request")


class BadRequest(Exception):
    def __init__(self, err_or_msg: ValidationError | str):
        self._internal_error = err_or_msg
        super().__init__(err_or_msg)

    def errors(self) -> list[ErrorDetails]:
        if isinstance(self._internal_error, ValidationError):
            return self._internal_error.errors()
        return [
            ErrorDetails(
                type="value_error",
                msg=self._internal_error,
                loc=[],  # type: ignore
                input=None,
            )
        ]

    def __str__(self) -> str:
        error = self._internal_error
        if isinstance(error, ValidationError):
            details = error.errors()[0]
            loc = "'" + ",".join([str(x) for x in details["loc"]]) + "' "
            if loc == "'*' ":
                loc = ""
            return f"validation error: {loc}{details['msg']}"
        return f"validation error: {super().__str__()}"
