"""
Backend-specific row writers used by the generic command classes.

SQLite and PostgreSQL hand the inserted row back with ``INSERT ...
RETURNING``; MySQL has no RETURNING, so its writer re-reads the row by the
primary key it just inserted. PostgreSQL and MySQL lock the before-state
row with ``SELECT ... FOR UPDATE``; SQLite transactions start with ``BEGIN
IMMEDIATE`` (see ``cmsdb.db.database``) and so hold the database-wide write
lock for the whole transaction instead.

Each writer also knows how to bound a transaction's statements by the
command timeout on its backend.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Dict

from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from .entities import EntityMapping


class RowWriter(ABC):
    dialect_name: str = ""
    lock_before_state: bool = False

    @abstractmethod
    def insert(self, session: Session, entity: EntityMapping, values: Dict[str, Any]):
        """Insert one row and return it as stored."""

    @abstractmethod
    def apply_timeout(self, session: Session, seconds: float) -> None:
        """Limit how long statements in ``session``'s transaction may block."""

    def fetch(self, session: Session, entity: EntityMapping, record_id: Any):
        """Return the row with ``record_id``; raise ``NoResultFound`` when absent."""
        stmt = (
            select(entity.model)
            .where(entity.id_column == entity.coerce_id(record_id))
            .execution_options(populate_existing=True)
        )
        if self.lock_before_state:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalar_one()

    def update(self, session: Session, entity: EntityMapping, record_id: Any, values: Dict[str, Any]) -> None:
        if not values:
            self.fetch(session, entity, record_id)
            return
        result = session.execute(
            update(entity.model)
            .where(entity.id_column == entity.coerce_id(record_id))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NoResultFound(f"no {entity.table_name} row with id {record_id!r}")

    def delete(self, session: Session, entity: EntityMapping, record_id: Any) -> None:
        result = session.execute(
            delete(entity.model)
            .where(entity.id_column == entity.coerce_id(record_id))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NoResultFound(f"no {entity.table_name} row with id {record_id!r}")


def _millis(seconds: float) -> int:
    return max(1, int(seconds * 1000))


class _ReturningRowWriter(RowWriter):
    def insert(self, session: Session, entity: EntityMapping, values: Dict[str, Any]):
        return session.scalars(insert(entity.model).returning(entity.model), [values]).one()


class SqliteRowWriter(_ReturningRowWriter):
    dialect_name = "sqlite"

    def apply_timeout(self, session: Session, seconds: float) -> None:
        # Connection-wide; BEGIN IMMEDIATE itself waits on the pysqlite timeout.
        session.execute(text(f"PRAGMA busy_timeout = {_millis(seconds)}"))


class PsqlRowWriter(_ReturningRowWriter):
    dialect_name = "postgresql"
    lock_before_state = True

    def apply_timeout(self, session: Session, seconds: float) -> None:
        millis = _millis(seconds)
        session.execute(text(f"SET LOCAL statement_timeout = {millis}"))
        session.execute(text(f"SET LOCAL lock_timeout = {millis}"))


class MysqlRowWriter(RowWriter):
    dialect_name = "mysql"
    lock_before_state = True

    def apply_timeout(self, session: Session, seconds: float) -> None:
        # MySQL has no transaction-local variant; every audited command resets both.
        session.execute(text(f"SET SESSION innodb_lock_wait_timeout = {max(1, math.ceil(seconds))}"))
        session.execute(text(f"SET SESSION max_execution_time = {_millis(seconds)}"))

    def insert(self, session: Session, entity: EntityMapping, values: Dict[str, Any]):
        session.execute(insert(entity.model), [values])
        # Read back what the server stored, including column defaults.
        return session.execute(
            select(entity.model).where(entity.id_column == values[entity.id_attr])
        ).scalar_one()
