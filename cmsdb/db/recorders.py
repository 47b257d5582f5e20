"""
Change event recorders, one per storage backend.

Each recorder writes the event into ``change_events`` through the session
of the mutation being audited, so the event commits or rolls back with it.
The SQL is hand-written per backend because each stores JSON differently.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy import BigInteger, DateTime, bindparam, text
from sqlalchemy.orm import Session

from cmsdb.audited.events import ChangeEvent
from .models import now_utc

logger = logging.getLogger(__name__)

_COLUMNS = (
    "event_id, hlc_timestamp, wall_timestamp, node_id, table_name, record_id, "
    "operation, action, user_id, old_values, new_values, metadata, request_id, ip"
)


class RecorderBackendError(ValueError):
    """A recorder was handed a session bound to another backend."""


def _dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


class SqlChangeEventRecorder:
    dialect_name: str = ""
    # Format applied to each JSON placeholder, e.g. "CAST({} AS JSONB)".
    json_expression: str = "{}"

    def __init__(self) -> None:
        self._statement = text(self._build_sql()).bindparams(
            bindparam("hlc_timestamp", type_=BigInteger()),
            bindparam("wall_timestamp", type_=DateTime(timezone=True)),
        )

    def _build_sql(self) -> str:
        old_values = self.json_expression.format(":old_values")
        new_values = self.json_expression.format(":new_values")
        metadata = self.json_expression.format(":metadata")
        return (
            f"INSERT INTO change_events ({_COLUMNS}) VALUES ("
            ":event_id, :hlc_timestamp, :wall_timestamp, :node_id, :table_name, :record_id, "
            f":operation, :action, :user_id, {old_values}, {new_values}, {metadata}, :request_id, :ip)"
        )

    def _params(self, event: ChangeEvent) -> Dict[str, Any]:
        return {
            "event_id": event.event_id,
            "hlc_timestamp": event.hlc_timestamp,
            "wall_timestamp": now_utc(),
            "node_id": event.node_id,
            "table_name": event.table_name,
            "record_id": event.record_id,
            "operation": event.operation.value,
            "action": event.action.value,
            "user_id": event.user_id,
            "old_values": _dump_json(event.old_values),
            "new_values": _dump_json(event.new_values),
            "metadata": _dump_json(event.metadata),
            "request_id": event.request_id,
            "ip": event.ip,
        }

    def record(self, session: Session, event: ChangeEvent) -> None:
        dialect = session.get_bind().dialect.name
        if dialect != self.dialect_name:
            raise RecorderBackendError(
                f"{type(self).__name__} cannot write to a {dialect} session (expects {self.dialect_name})"
            )
        session.execute(self._statement, self._params(event))
        logger.debug(
            "recorded %s %s %s as event %s",
            event.operation.value, event.table_name, event.record_id, event.event_id,
        )


class SqliteRecorder(SqlChangeEventRecorder):
    dialect_name = "sqlite"
    json_expression = "json({})"


class MysqlRecorder(SqlChangeEventRecorder):
    dialect_name = "mysql"
    json_expression = "CAST({} AS JSON)"


class PsqlRecorder(SqlChangeEventRecorder):
    dialect_name = "postgresql"
    json_expression = "CAST({} AS JSONB)"


SQLITE_RECORDER = SqliteRecorder()
MYSQL_RECORDER = MysqlRecorder()
PSQL_RECORDER = PsqlRecorder()
