"""
Concrete audited commands.

A command is built per call by one of the database classes, which supplies
the backend's row writer and recorder; the engine in ``cmsdb.audited`` then
drives it without knowing which backend it targets.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session, sessionmaker

from cmsdb.audited.context import AuditContext
from cmsdb.audited.contracts import DEFAULT_COMMAND_TIMEOUT, ChangeEventRecorder
from cmsdb.audited.hooks import HookRunner
from .dialects import RowWriter
from .entities import EntityMapping

R = TypeVar("R")


@dataclass(frozen=True, kw_only=True)
class _RecordCmd(Generic[R]):
    entity: EntityMapping[R]
    rows: RowWriter
    connection: sessionmaker
    audit_context: AuditContext
    recorder: ChangeEventRecorder
    hook_runner: Optional[HookRunner] = None
    timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT

    @property
    def table_name(self) -> str:
        return self.entity.table_name

    def apply_timeout(self, session: Session, seconds: float) -> None:
        self.rows.apply_timeout(session, seconds)


@dataclass(frozen=True, kw_only=True)
class NewRecordCmd(_RecordCmd[R]):
    payload: BaseModel

    def params(self) -> BaseModel:
        return self.payload

    def execute(self, session: Session) -> R:
        return self.rows.insert(session, self.entity, self.entity.insert_values(self.payload))

    def get_id(self, row: R) -> str:
        return self.entity.row_id(row)


@dataclass(frozen=True, kw_only=True)
class UpdateRecordCmd(_RecordCmd[R]):
    payload: BaseModel

    def params(self) -> BaseModel:
        return self.payload

    def get_id(self) -> str:
        return str(self.entity.params_id(self.payload))

    def get_before(self, session: Session) -> R:
        return self.rows.fetch(session, self.entity, self.entity.params_id(self.payload))

    def execute(self, session: Session) -> None:
        self.rows.update(
            session,
            self.entity,
            self.entity.params_id(self.payload),
            self.entity.update_values(self.payload),
        )


@dataclass(frozen=True, kw_only=True)
class DeleteRecordCmd(_RecordCmd[R]):
    record_id: Any

    def get_id(self) -> str:
        return str(self.record_id)

    def get_before(self, session: Session) -> R:
        return self.rows.fetch(session, self.entity, self.record_id)

    def execute(self, session: Session) -> None:
        self.rows.delete(session, self.entity, self.record_id)
