"""Custom SQLAlchemy types used by the persistence layer."""
from __future__ import annotations

from sqlalchemy.dialects import mysql, postgresql
from sqlalchemy.types import JSON, TypeDecorator


class JSONDocument(TypeDecorator):
    """JSON stored natively on every backend.

    PostgreSQL gets JSONB, MySQL its JSON type, SQLite the generic JSON
    (TEXT) type. SQL ``NULL`` is used for ``None`` rather than JSON ``null``.
    """

    cache_ok = True
    impl = JSON

    def load_dialect_impl(self, dialect):  # type: ignore[override]
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.JSONB(none_as_null=True))
        if dialect.name == "mysql":
            return dialect.type_descriptor(mysql.JSON(none_as_null=True))
        return dialect.type_descriptor(JSON(none_as_null=True))
