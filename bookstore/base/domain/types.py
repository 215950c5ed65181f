# (c) Nelen & Schuurmans

from typing import Any
from uuid import UUID

__all__ = ["Json", "Id"]


Json = dict[str, Any]
Id = UUID
