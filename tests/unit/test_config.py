import logging

import pytest

from cmsdb.config import _normalize_bool, configure_logging, get_settings, resolve_database_url

_COMPONENTS = {
    "CMSDB_DB_USER": "cms",
    "CMSDB_DB_PASSWORD": "secret",
    "CMSDB_DB_HOST": "db.internal",
    "CMSDB_DB_PORT": "5432",
    "CMSDB_DB_NAME": "cms",
}


def test_database_url_wins(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://a:b@h:1/d")
    monkeypatch.setenv("CMSDB_DB_DRIVER", "mysql")
    assert resolve_database_url() == "postgresql://a:b@h:1/d"


def test_default_is_in_memory_sqlite(monkeypatch):
    monkeypatch.delenv("CMSDB_DB_PATH", raising=False)
    assert resolve_database_url() == "sqlite+pysqlite:///:memory:"


def test_sqlite_path(monkeypatch, tmp_path):
    monkeypatch.setenv("CMSDB_DB_DRIVER", "sqlite")
    monkeypatch.setenv("CMSDB_DB_PATH", str(tmp_path / "cms.db"))
    assert resolve_database_url() == f"sqlite+pysqlite:///{tmp_path / 'cms.db'}"


@pytest.mark.parametrize("driver,prefix", [("postgres", "postgresql"), ("mysql", "mysql+pymysql")])
def test_server_backends_build_url_from_components(monkeypatch, driver, prefix):
    monkeypatch.setenv("CMSDB_DB_DRIVER", driver)
    for key, value in _COMPONENTS.items():
        monkeypatch.setenv(key, value)
    assert resolve_database_url() == f"{prefix}://cms:secret@db.internal:5432/cms"


def test_missing_components_are_named(monkeypatch):
    monkeypatch.setenv("CMSDB_DB_DRIVER", "postgres")
    for key in _COMPONENTS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CMSDB_DB_USER", "cms")
    with pytest.raises(ValueError) as exc_info:
        resolve_database_url()
    message = str(exc_info.value)
    assert "CMSDB_DB_PASSWORD" in message
    assert "CMSDB_DB_NAME" in message
    assert "CMSDB_DB_USER" not in message


def test_unknown_driver(monkeypatch):
    monkeypatch.setenv("CMSDB_DB_DRIVER", "oracle")
    with pytest.raises(ValueError, match="Unsupported CMSDB_DB_DRIVER"):
        resolve_database_url()


def test_settings_are_cached_until_cleared(monkeypatch):
    monkeypatch.setenv("CMSDB_NODE_ID", "node-a")
    assert get_settings().node_id == "node-a"
    monkeypatch.setenv("CMSDB_NODE_ID", "node-b")
    assert get_settings().node_id == "node-a"
    get_settings.cache_clear()
    assert get_settings().node_id == "node-b"


def test_settings_defaults(monkeypatch):
    for key in ("CMSDB_NODE_ID", "CMSDB_SQL_ECHO", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    settings = get_settings()
    assert settings.node_id == "node-local"
    assert settings.sql_echo is False
    assert settings.log_level == "INFO"


@pytest.mark.parametrize(
    "raw,expected",
    [(None, False), ("", False), ("1", True), ("YES", True), (" on ", True), ("off", False), ("maybe", False)],
)
def test_normalize_bool(raw, expected):
    assert _normalize_bool(raw) is expected


def test_configure_logging(monkeypatch):
    root = logging.getLogger()
    previous = root.level
    try:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert configure_logging() == logging.DEBUG
        assert root.level == logging.DEBUG
        assert configure_logging("warning") == logging.WARNING
        assert configure_logging("nonsense") == logging.INFO
    finally:
        root.setLevel(previous)
