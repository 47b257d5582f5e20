"""Conversion of rows and params to JSON-compatible audit state."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, Dict, Optional

from pydantic import BaseModel
from pydantic_core import to_jsonable_python
from sqlalchemy import inspect
from sqlalchemy.engine import Row
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import InstanceState


def _orm_columns(value: Any) -> Optional[Dict[str, Any]]:
    try:
        state = inspect(value)
    except NoInspectionAvailable:
        return None
    if not isinstance(state, InstanceState):
        return None
    return {attr.key: getattr(value, attr.key) for attr in state.mapper.column_attrs}


def to_state(value: Any) -> Any:
    """Return ``value`` as plain JSON data (dicts, lists, strings, numbers).

    Handles pydantic models, SQLAlchemy ORM instances and result rows,
    dataclasses and mappings; anything else goes through pydantic's encoder.
    """
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_unset=True)
    if isinstance(value, Row):
        return to_jsonable_python(dict(value._mapping))
    if isinstance(value, Mapping):
        return to_jsonable_python(dict(value))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable_python(dataclasses.asdict(value))
    columns = _orm_columns(value)
    if columns is not None:
        return to_jsonable_python(columns)
    return to_jsonable_python(value)
