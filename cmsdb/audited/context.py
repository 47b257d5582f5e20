"""Identity and request metadata attached to every audited mutation."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from cmsdb.config import get_settings


class AuditContext(BaseModel):
    """Who performed a mutation, from which node, for which request.

    Immutable; the engine forwards it untouched into the change event.
    Empty strings mean "unknown" and are stored as NULL by the recorders.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = ""
    node_id: str = ""
    request_id: str = ""
    ip: str = ""

    @classmethod
    def for_request(
        cls,
        user_id: str,
        *,
        request_id: str = "",
        ip: str = "",
        node_id: Optional[str] = None,
    ) -> "AuditContext":
        """Build a context, defaulting the node to ``CMSDB_NODE_ID``."""
        return cls(
            user_id=user_id,
            node_id=node_id if node_id is not None else get_settings().node_id,
            request_id=request_id,
            ip=ip,
        )
