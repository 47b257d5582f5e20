"""
Backend-bound database handles.

``SqliteDatabase``, ``MysqlDatabase`` and ``PsqlDatabase`` differ only in the
row writer and recorder they hand to the commands they build. Picking one
(directly or via ``open_database``) is the single point where a backend is
chosen; the audited engine never branches on it.
"""
from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from cmsdb.audited.context import AuditContext
from cmsdb.audited.contracts import DEFAULT_COMMAND_TIMEOUT, ChangeEventRecorder
from cmsdb.audited.hooks import HookRunner
from .commands import DeleteRecordCmd, NewRecordCmd, UpdateRecordCmd
from .database import create_db_engine, drop_schema, init_schema, make_session_factory
from .dialects import MysqlRowWriter, PsqlRowWriter, RowWriter, SqliteRowWriter
from .entities import EntityMapping
from .recorders import MYSQL_RECORDER, PSQL_RECORDER, SQLITE_RECORDER
from .repositories import records

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Database:
    dialect_name: ClassVar[str] = ""
    recorder: ClassVar[ChangeEventRecorder]
    rows: ClassVar[RowWriter]

    def __init__(self, engine: Engine, *, hook_runner: Optional[HookRunner] = None) -> None:
        if engine.dialect.name != self.dialect_name:
            raise ValueError(
                f"{type(self).__name__} needs a {self.dialect_name} engine, got {engine.dialect.name}"
            )
        self.engine = engine
        self.session_factory = make_session_factory(engine)
        self.hook_runner = hook_runner

    def create_tables(self) -> None:
        init_schema(self.engine)

    def drop_tables(self) -> None:
        drop_schema(self.engine)

    def session(self) -> Session:
        return self.session_factory()

    # Audited commands

    def new_cmd(
        self, entity: EntityMapping[R], audit_context: AuditContext, params: BaseModel,
        timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT,
    ) -> NewRecordCmd[R]:
        return NewRecordCmd(
            entity=entity,
            rows=self.rows,
            connection=self.session_factory,
            audit_context=audit_context,
            recorder=self.recorder,
            hook_runner=self.hook_runner,
            timeout=timeout,
            payload=params,
        )

    def update_cmd(
        self, entity: EntityMapping[R], audit_context: AuditContext, params: BaseModel,
        timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT,
    ) -> UpdateRecordCmd[R]:
        return UpdateRecordCmd(
            entity=entity,
            rows=self.rows,
            connection=self.session_factory,
            audit_context=audit_context,
            recorder=self.recorder,
            hook_runner=self.hook_runner,
            timeout=timeout,
            payload=params,
        )

    def delete_cmd(
        self, entity: EntityMapping[R], audit_context: AuditContext, record_id: Any,
        timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT,
    ) -> DeleteRecordCmd[R]:
        return DeleteRecordCmd(
            entity=entity,
            rows=self.rows,
            connection=self.session_factory,
            audit_context=audit_context,
            recorder=self.recorder,
            hook_runner=self.hook_runner,
            timeout=timeout,
            record_id=record_id,
        )

    # Reads

    def get(self, entity: EntityMapping[R], record_id: Any) -> Optional[R]:
        with self.session_factory() as db:
            return records.get_record(db, entity, record_id)

    def list_all(self, entity: EntityMapping[R], skip: int = 0, limit: int = 100) -> List[R]:
        with self.session_factory() as db:
            return records.list_records(db, entity, skip=skip, limit=limit)

    def count(self, entity: EntityMapping) -> int:
        with self.session_factory() as db:
            return records.count_records(db, entity)


class SqliteDatabase(Database):
    dialect_name = "sqlite"
    recorder = SQLITE_RECORDER
    rows = SqliteRowWriter()


class MysqlDatabase(Database):
    dialect_name = "mysql"
    recorder = MYSQL_RECORDER
    rows = MysqlRowWriter()


class PsqlDatabase(Database):
    dialect_name = "postgresql"
    recorder = PSQL_RECORDER
    rows = PsqlRowWriter()


DATABASE_CLASSES: Dict[str, Type[Database]] = {
    cls.dialect_name: cls for cls in (SqliteDatabase, MysqlDatabase, PsqlDatabase)
}


def open_database(
    url: Optional[str] = None,
    *,
    hook_runner: Optional[HookRunner] = None,
    create_tables: bool = False,
    **engine_kwargs: Any,
) -> Database:
    """Connect to ``url`` (default: configured URL) with the matching backend class."""
    engine = create_db_engine(url, **engine_kwargs)
    try:
        cls = DATABASE_CLASSES[engine.dialect.name]
    except KeyError:
        engine.dispose()
        raise ValueError(f"Unsupported database backend: {engine.dialect.name}") from None
    db = cls(engine, hook_runner=hook_runner)
    if create_tables:
        db.create_tables()
    logger.debug("opened %s", cls.__name__)
    return db
