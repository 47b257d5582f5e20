import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict

ContentStatus = Literal["draft", "published", "archived"]


class ContentDataBase(BaseModel):
    datatype_id: uuid.UUID
    parent_id: uuid.UUID | None = None
    route_id: uuid.UUID | None = None
    author_id: str | None = None
    status: ContentStatus = "draft"


class ContentDataCreate(ContentDataBase):
    pass


class ContentDataUpdate(BaseModel):
    content_data_id: uuid.UUID
    parent_id: uuid.UUID | None = None
    route_id: uuid.UUID | None = None
    author_id: str | None = None
    status: ContentStatus | None = None


class ContentData(ContentDataBase):
    content_data_id: uuid.UUID
    date_created: datetime
    date_modified: datetime
    model_config = ConfigDict(from_attributes=True)
