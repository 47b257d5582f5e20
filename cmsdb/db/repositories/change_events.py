"""
Change event repository functions.

Reads over the audit log plus the sync/consume bookkeeping used by
replication and downstream consumers.
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cmsdb.db import models

ChangeEventRecord = models.ChangeEventRecord


def get_change_event(db: Session, event_id: str) -> Optional[ChangeEventRecord]:
    return db.get(ChangeEventRecord, event_id)


def get_change_events_by_record(db: Session, table_name: str, record_id: str) -> List[ChangeEventRecord]:
    stmt = (
        select(ChangeEventRecord)
        .where(ChangeEventRecord.table_name == table_name, ChangeEventRecord.record_id == record_id)
        .order_by(ChangeEventRecord.hlc_timestamp)
    )
    return list(db.scalars(stmt))


def list_change_events(db: Session, skip: int = 0, limit: int = 100) -> List[ChangeEventRecord]:
    stmt = select(ChangeEventRecord).order_by(ChangeEventRecord.hlc_timestamp).offset(skip).limit(limit)
    return list(db.scalars(stmt))


def list_change_events_by_user(db: Session, user_id: Optional[str], skip: int = 0, limit: int = 100) -> List[ChangeEventRecord]:
    stmt = select(ChangeEventRecord)
    if user_id:
        stmt = stmt.where(ChangeEventRecord.user_id == user_id)
    else:
        stmt = stmt.where(ChangeEventRecord.user_id.is_(None))
    stmt = stmt.order_by(ChangeEventRecord.hlc_timestamp).offset(skip).limit(limit)
    return list(db.scalars(stmt))


def list_change_events_by_action(db: Session, action: str, skip: int = 0, limit: int = 100) -> List[ChangeEventRecord]:
    action_value = getattr(action, "value", action)
    stmt = (
        select(ChangeEventRecord)
        .where(ChangeEventRecord.action == action_value)
        .order_by(ChangeEventRecord.hlc_timestamp)
        .offset(skip)
        .limit(limit)
    )
    return list(db.scalars(stmt))


def count_change_events(db: Session, table_name: Optional[str] = None) -> int:
    stmt = select(func.count()).select_from(ChangeEventRecord)
    if table_name:
        stmt = stmt.where(ChangeEventRecord.table_name == table_name)
    return db.scalar(stmt) or 0


def get_unsynced_events(db: Session, limit: int = 100) -> List[ChangeEventRecord]:
    stmt = (
        select(ChangeEventRecord)
        .where(ChangeEventRecord.synced_at.is_(None))
        .order_by(ChangeEventRecord.hlc_timestamp)
        .limit(limit)
    )
    return list(db.scalars(stmt))


def get_unconsumed_events(db: Session, limit: int = 100) -> List[ChangeEventRecord]:
    stmt = (
        select(ChangeEventRecord)
        .where(ChangeEventRecord.consumed_at.is_(None))
        .order_by(ChangeEventRecord.hlc_timestamp)
        .limit(limit)
    )
    return list(db.scalars(stmt))


def _mark(db: Session, event_id: str, column: str) -> bool:
    db_event = db.get(ChangeEventRecord, event_id)
    if not db_event:
        return False
    setattr(db_event, column, models.now_utc())
    db.commit()
    return True


def mark_event_synced(db: Session, event_id: str) -> bool:
    return _mark(db, event_id, "synced_at")


def mark_event_consumed(db: Session, event_id: str) -> bool:
    return _mark(db, event_id, "consumed_at")


def delete_change_event(db: Session, event_id: str) -> bool:
    """Remove one event from the log (retention pruning); True if it existed."""
    db_event = db.get(ChangeEventRecord, event_id)
    if not db_event:
        return False
    db.delete(db_event)
    db.commit()
    return True
