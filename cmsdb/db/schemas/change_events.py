from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class StoredChangeEvent(BaseModel):
    event_id: str
    hlc_timestamp: int
    wall_timestamp: datetime
    node_id: str
    table_name: str
    record_id: str
    operation: str
    action: str
    user_id: Optional[str] = None
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="metadata_json")
    request_id: Optional[str] = None
    ip: Optional[str] = None
    synced_at: Optional[datetime] = None
    consumed_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
