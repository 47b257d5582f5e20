import json
import uuid

import pytest

from cmsdb.audited import Action, AuditContext, ChangeEvent, Operation, with_transaction
from cmsdb.db import (
    MYSQL_RECORDER,
    PSQL_RECORDER,
    SQLITE_RECORDER,
    RecorderBackendError,
)
from cmsdb.db.repositories import change_events
from cmsdb.db.schemas import StoredChangeEvent


def _event(**overrides):
    values = dict(
        table_name="roles",
        record_id=str(uuid.uuid4()),
        operation=Operation.UPDATE,
        action=Action.UPDATE,
        old_values={"label": "admin", "permissions": None},
        new_values={"label": "editor"},
        metadata={"source": "import", "batch": 3},
        audit=AuditContext(user_id="u-1", node_id="node-1", request_id="req-1", ip="127.0.0.1"),
    )
    values.update(overrides)
    return ChangeEvent(**values)


def test_sqlite_recorder_round_trips_event(sqlite_db):
    event = _event()
    with_transaction(sqlite_db.session_factory, lambda s: SQLITE_RECORDER.record(s, event))

    with sqlite_db.session() as s:
        stored = StoredChangeEvent.model_validate(change_events.get_change_event(s, event.event_id))
    assert stored.hlc_timestamp == event.hlc_timestamp
    assert stored.node_id == "node-1"
    assert stored.operation == "UPDATE"
    assert stored.action == "update"
    assert stored.old_values == {"label": "admin", "permissions": None}
    assert stored.new_values == {"label": "editor"}
    assert stored.metadata == {"source": "import", "batch": 3}
    assert stored.wall_timestamp is not None


def test_sqlite_recorder_stores_missing_values_as_null(sqlite_db):
    event = _event(operation=Operation.INSERT, action=Action.CREATE, old_values=None, metadata=None,
                   audit=AuditContext(node_id="node-1"))
    with_transaction(sqlite_db.session_factory, lambda s: SQLITE_RECORDER.record(s, event))

    with sqlite_db.session() as s:
        record = change_events.get_change_event(s, event.event_id)
        assert record.old_values is None
        assert record.get_metadata() is None
        assert record.user_id is None
        assert record.ip is None


def test_recorders_refuse_foreign_sessions(sqlite_db):
    with sqlite_db.session() as s:
        with pytest.raises(RecorderBackendError, match="expects postgresql"):
            PSQL_RECORDER.record(s, _event())
        with pytest.raises(RecorderBackendError, match="expects mysql"):
            MYSQL_RECORDER.record(s, _event())


@pytest.mark.parametrize(
    "recorder,fragment",
    [
        (SQLITE_RECORDER, "json(:old_values)"),
        (MYSQL_RECORDER, "CAST(:new_values AS JSON)"),
        (PSQL_RECORDER, "CAST(:metadata AS JSONB)"),
    ],
)
def test_recorder_sql_casts_json_for_backend(recorder, fragment):
    sql = recorder._build_sql()
    assert sql.startswith("INSERT INTO change_events (")
    assert fragment in sql


def test_recorder_params_serialize_json():
    params = PSQL_RECORDER._params(_event(new_values={"b": 1, "a": [1, 2]}))
    assert params["new_values"] == '{"a":[1,2],"b":1}'
    assert json.loads(params["metadata"]) == {"source": "import", "batch": 3}
    assert params["operation"] == "UPDATE"
    assert params["user_id"] == "u-1"
