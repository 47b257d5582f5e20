import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict


class RoleBase(BaseModel):
    label: str
    permissions: Optional[Dict[str, Any]] = None


class RoleCreate(RoleBase):
    pass


class RoleUpdate(BaseModel):
    role_id: uuid.UUID
    label: str | None = None
    permissions: Optional[Dict[str, Any]] = None


class Role(RoleBase):
    role_id: uuid.UUID
    date_created: datetime
    date_modified: datetime
    model_config = ConfigDict(from_attributes=True)
