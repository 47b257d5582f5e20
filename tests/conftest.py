import pytest

from cmsdb.audited import AuditContext
from cmsdb.config import get_settings
from cmsdb.db import open_database


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Settings are cached from the environment; isolate every test."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("CMSDB_DB_DRIVER", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlite_db():
    db = open_database("sqlite+pysqlite:///:memory:", create_tables=True)
    try:
        yield db
    finally:
        db.engine.dispose()


@pytest.fixture
def audit_ctx():
    return AuditContext(user_id="user-1", node_id="node-test", request_id="req-1", ip="10.0.0.1")
