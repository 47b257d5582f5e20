"""Change event value produced by the engine and persisted by recorders."""
from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .context import AuditContext
from .hlc import hlc_now


class Operation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    PUBLISH = "publish"
    ARCHIVE = "archive"


def new_event_id() -> str:
    return str(uuid.uuid4())


class ChangeEvent(BaseModel):
    """One mutation's durable record.

    ``old_values`` is absent for creates and ``new_values`` for deletes; both
    hold JSON-compatible state, never live ORM objects.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=new_event_id)
    hlc_timestamp: int = Field(default_factory=lambda: int(hlc_now()))
    table_name: str
    record_id: str
    operation: Operation
    action: Action
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    metadata: Optional[Dict[str, Any]] = None
    audit: AuditContext

    @property
    def node_id(self) -> str:
        return self.audit.node_id

    @property
    def user_id(self) -> Optional[str]:
        return self.audit.user_id or None

    @property
    def request_id(self) -> Optional[str]:
        return self.audit.request_id or None

    @property
    def ip(self) -> Optional[str]:
        return self.audit.ip or None
