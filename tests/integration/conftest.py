import os

import pytest
from sqlalchemy.engine import make_url

from cmsdb.db import open_database


def _start(container):
    try:
        container.start()
    except Exception as exc:  # docker unavailable
        pytest.skip(f"cannot start {type(container).__name__}: {exc}")
    return container


@pytest.fixture(scope="session")
def _test_postgres():
    postgres = pytest.importorskip("testcontainers.postgres")
    image = os.getenv("TEST_POSTGRES_IMAGE", "postgres:16-alpine")
    pg = _start(postgres.PostgresContainer(image))
    try:
        url = make_url(pg.get_connection_url()).set(drivername="postgresql+psycopg2")
        yield url.render_as_string(hide_password=False)
    finally:
        pg.stop()


@pytest.fixture(scope="session")
def _test_mysql():
    mysql = pytest.importorskip("testcontainers.mysql")
    image = os.getenv("TEST_MYSQL_IMAGE", "mysql:8.0")
    my = _start(mysql.MySqlContainer(image))
    try:
        url = make_url(my.get_connection_url()).set(drivername="mysql+pymysql")
        yield url.render_as_string(hide_password=False)
    finally:
        my.stop()


@pytest.fixture(params=["postgresql", "mysql"])
def server_db(request):
    """A fresh schema on each server backend, dropped after the test."""
    url = request.getfixturevalue("_test_postgres" if request.param == "postgresql" else "_test_mysql")
    db = open_database(url, create_tables=True)
    try:
        yield db
    finally:
        db.drop_tables()
        db.engine.dispose()
