"""
Storage side of the data-access layer: models, recorders and the
backend-bound database handles that build audited commands.
"""
from .drivers import Database, MysqlDatabase, PsqlDatabase, SqliteDatabase, open_database
from .entities import ALL_ENTITIES, CONTENT_DATA, DATATYPES, ROLES, EntityMapping
from .recorders import (
    MYSQL_RECORDER,
    PSQL_RECORDER,
    SQLITE_RECORDER,
    MysqlRecorder,
    PsqlRecorder,
    RecorderBackendError,
    SqliteRecorder,
)

__all__ = [
    "Database",
    "SqliteDatabase",
    "MysqlDatabase",
    "PsqlDatabase",
    "open_database",
    "EntityMapping",
    "ALL_ENTITIES",
    "ROLES",
    "DATATYPES",
    "CONTENT_DATA",
    "SqliteRecorder",
    "MysqlRecorder",
    "PsqlRecorder",
    "SQLITE_RECORDER",
    "MYSQL_RECORDER",
    "PSQL_RECORDER",
    "RecorderBackendError",
]
