import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class DatatypeBase(BaseModel):
    label: str
    type: str
    parent_id: uuid.UUID | None = None
    author_id: str | None = None


class DatatypeCreate(DatatypeBase):
    pass


class DatatypeUpdate(BaseModel):
    datatype_id: uuid.UUID
    label: str | None = None
    type: str | None = None
    parent_id: uuid.UUID | None = None
    author_id: str | None = None


class Datatype(DatatypeBase):
    datatype_id: uuid.UUID
    date_created: datetime
    date_modified: datetime
    model_config = ConfigDict(from_attributes=True)
