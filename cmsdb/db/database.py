"""
Database engine and session management.

Builds SQLAlchemy engines for any of the three supported backends from a URL
(or the environment, see ``cmsdb.config``) and the session factories the
audited commands open their transactions from.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, event, exc
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cmsdb.audited.contracts import DEFAULT_COMMAND_TIMEOUT
from cmsdb.config import get_settings

logger = logging.getLogger(__name__)

# Seconds a connection waits on another writer's lock before BEGIN fails.
SQLITE_BUSY_TIMEOUT = DEFAULT_COMMAND_TIMEOUT


def _engine_kwargs(url: str) -> Dict[str, Any]:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}
    kwargs: Dict[str, Any] = {
        "connect_args": {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
    }
    if parsed.database in (None, "", ":memory:"):
        # One shared connection so the in-memory schema persists across sessions
        kwargs["poolclass"] = SerializedStaticPool
    return kwargs


def _install_sqlite_listeners(engine: Engine) -> None:
    """Make pysqlite honour real transactions and foreign keys.

    pysqlite defers BEGIN until the first write, which would leave the
    before-state read outside the mutation's transaction. Disable its own
    transaction handling and emit BEGIN IMMEDIATE when SQLAlchemy starts one,
    so every transaction holds the write lock from its first statement and
    concurrent writers wait on the busy timeout instead of failing on a lock
    upgrade.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class SerializedStaticPool(StaticPool):
    """``StaticPool`` that lends its single connection to one thread at a time.

    Every thread shares the same in-memory database connection. A second
    thread beginning while the first is mid-transaction would fail, and the
    reset on its return would roll back the first thread's work. The lock is
    taken before the connection is handed out and released only after it has
    been reset and returned, so each transaction runs alone. Waiting longer
    than ``SQLITE_BUSY_TIMEOUT`` raises ``sqlalchemy.exc.TimeoutError``.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._in_use = threading.Lock()

    def _do_get(self):
        if not self._in_use.acquire(timeout=SQLITE_BUSY_TIMEOUT):
            raise exc.TimeoutError(
                f"in-memory SQLite connection still in use after {SQLITE_BUSY_TIMEOUT:g}s"
            )
        try:
            return super()._do_get()
        except BaseException:
            self._in_use.release()
            raise

    def _do_return_conn(self, record) -> None:
        try:
            super()._do_return_conn(record)
        finally:
            self._in_use.release()


def create_db_engine(url: Optional[str] = None, **overrides: Any) -> Engine:
    """Create an engine for ``url`` (default: the configured database URL)."""
    settings = get_settings()
    url = url or settings.database_url
    kwargs = _engine_kwargs(url)
    kwargs.setdefault("echo", settings.sql_echo)
    kwargs.update(overrides)
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        _install_sqlite_listeners(engine)
    logger.info("created %s engine for %s", engine.dialect.name, engine.url.render_as_string(hide_password=True))
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    # Rows returned by audited creates must stay readable after commit.
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create every table known to the models (idempotent)."""
    from cmsdb.db import models  # local import to avoid circular import at module load
    models.Base.metadata.create_all(bind=engine)


def drop_schema(engine: Engine) -> None:
    from cmsdb.db import models
    models.Base.metadata.drop_all(bind=engine)
