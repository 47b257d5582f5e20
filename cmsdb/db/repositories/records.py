"""
Read access to audited entities, shared by every backend.
"""
from __future__ import annotations

from typing import Any, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cmsdb.db.entities import EntityMapping


def get_record(db: Session, entity: EntityMapping, record_id: Any):
    record_uuid = entity.coerce_id(record_id)
    if record_uuid is None:
        return None
    return db.get(entity.model, record_uuid, populate_existing=True)


def list_records(db: Session, entity: EntityMapping, skip: int = 0, limit: int = 100) -> List[Any]:
    stmt = select(entity.model).order_by(entity.id_column).offset(skip).limit(limit)
    return list(db.scalars(stmt))


def count_records(db: Session, entity: EntityMapping) -> int:
    return db.scalar(select(func.count()).select_from(entity.model)) or 0

