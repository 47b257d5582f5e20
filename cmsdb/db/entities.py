"""
Entity mappings: how generic commands turn params into row values.

Each mapping names the table, the ORM model, the primary-key attribute and
which update-param field carries the target id.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from . import models

R = TypeVar("R")


@dataclass(frozen=True)
class EntityMapping(Generic[R]):
    table_name: str
    model: Type[R]
    id_attr: str

    @property
    def id_column(self):
        return getattr(self.model, self.id_attr)

    def coerce_id(self, value: Any) -> Optional[uuid.UUID]:
        """Return ``value`` as a UUID, or None when it cannot name any row."""
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value))
        except (TypeError, ValueError):
            return None

    def insert_values(self, params: BaseModel) -> Dict[str, Any]:
        values = params.model_dump()
        values[self.id_attr] = uuid.uuid4()
        return values

    def update_values(self, params: BaseModel) -> Dict[str, Any]:
        return params.model_dump(exclude_unset=True, exclude={self.id_attr})

    def params_id(self, params: BaseModel) -> Any:
        return getattr(params, self.id_attr)

    def row_id(self, row: R) -> str:
        return str(getattr(row, self.id_attr))


ROLES: EntityMapping[models.Role] = EntityMapping("roles", models.Role, "role_id")
DATATYPES: EntityMapping[models.Datatype] = EntityMapping("datatypes", models.Datatype, "datatype_id")
CONTENT_DATA: EntityMapping[models.ContentData] = EntityMapping("content_data", models.ContentData, "content_data_id")

ALL_ENTITIES = (ROLES, DATATYPES, CONTENT_DATA)
