import dataclasses
import threading
import uuid

import pytest
from sqlalchemy import select

from cmsdb.audited import (
    AuditContext,
    AuditedCommandError,
    AuditRecordError,
    MutationError,
    RecordNotFoundError,
    create,
    delete,
    update,
)
from cmsdb.db import CONTENT_DATA, DATATYPES, ROLES, MysqlDatabase, PsqlDatabase
from cmsdb.db.models import Role
from cmsdb.db.repositories import change_events
from cmsdb.db.schemas import ContentDataCreate, ContentDataUpdate, DatatypeCreate, RoleCreate, RoleUpdate
from tests.support import FailingRecorder

pytestmark = pytest.mark.integration

CTX = AuditContext(user_id="user-1", node_id="node-it", request_id="req-it", ip="192.0.2.1")


def _history(db, table, record_id):
    with db.session() as s:
        return change_events.get_change_events_by_record(s, table, str(record_id))


def test_backend_class_matches_engine(server_db):
    assert isinstance(server_db, (PsqlDatabase, MysqlDatabase))
    assert server_db.rows.lock_before_state


def test_role_lifecycle(server_db):
    admin = create(server_db.new_cmd(ROLES, CTX, RoleCreate(label="admin", permissions={"all": True})))
    other = create(server_db.new_cmd(ROLES, CTX, RoleCreate(label="admin")))
    assert admin.role_id != other.role_id
    assert admin.date_created is not None

    update(server_db.update_cmd(ROLES, CTX, RoleUpdate(role_id=admin.role_id, label="editor")))
    delete(server_db.delete_cmd(ROLES, CTX, admin.role_id))
    assert server_db.get(ROLES, admin.role_id) is None

    events = _history(server_db, "roles", admin.role_id)
    assert [e.operation for e in events] == ["INSERT", "UPDATE", "DELETE"]
    assert events[0].new_values["permissions"] == {"all": True}
    assert events[1].old_values["label"] == "admin"
    assert events[1].new_values["label"] == "editor"
    assert events[2].old_values["label"] == "editor"
    assert events[2].user_id == "user-1"
    assert events[2].ip == "192.0.2.1"

    with pytest.raises(RecordNotFoundError):
        update(server_db.update_cmd(ROLES, CTX, RoleUpdate(role_id=admin.role_id, label="ghost")))
    assert len(_history(server_db, "roles", admin.role_id)) == 3


def test_failing_recorder_leaves_no_trace(server_db):
    role = create(server_db.new_cmd(ROLES, CTX, RoleCreate(label="stable")))
    cmd = dataclasses.replace(
        server_db.update_cmd(ROLES, CTX, RoleUpdate(role_id=role.role_id, label="changed")),
        recorder=FailingRecorder(),
    )
    with pytest.raises(AuditRecordError):
        update(cmd)
    assert server_db.get(ROLES, role.role_id).label == "stable"
    assert len(_history(server_db, "roles", role.role_id)) == 1

    cmd = dataclasses.replace(server_db.new_cmd(ROLES, CTX, RoleCreate(label="never")), recorder=FailingRecorder())
    with pytest.raises(AuditRecordError):
        create(cmd)
    assert server_db.count(ROLES) == 1


def test_foreign_key_violation_is_mutation_error(server_db):
    with pytest.raises(MutationError):
        create(server_db.new_cmd(CONTENT_DATA, CTX, ContentDataCreate(datatype_id=uuid.uuid4())))
    with server_db.session() as s:
        assert change_events.count_change_events(s) == 0


def test_content_status_update(server_db):
    datatype = create(server_db.new_cmd(DATATYPES, CTX, DatatypeCreate(label="Page", type="ROOT")))
    content = create(server_db.new_cmd(CONTENT_DATA, CTX, ContentDataCreate(datatype_id=datatype.datatype_id)))
    assert content.status == "draft"

    update(server_db.update_cmd(
        CONTENT_DATA, CTX, ContentDataUpdate(content_data_id=content.content_data_id, status="published"),
    ))
    events = _history(server_db, "content_data", content.content_data_id)
    assert events[-1].old_values["status"] == "draft"
    assert events[-1].new_values["status"] == "published"


def test_concurrent_updates_each_see_committed_before_state(server_db):
    role = create(server_db.new_cmd(ROLES, CTX, RoleCreate(label="v0")))
    errors = []

    def worker(n):
        try:
            update(server_db.update_cmd(ROLES, CTX, RoleUpdate(role_id=role.role_id, label=f"v{n}")))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []

    updates = _history(server_db, "roles", role.role_id)[1:]
    assert len(updates) == 5
    # Row locks serialise the updates: every old label is the previous new label.
    old_labels = [e.old_values["label"] for e in updates]
    new_labels = [e.new_values["label"] for e in updates]
    assert len(set(old_labels)) == 5
    assert set(old_labels) - set(new_labels) == {"v0"}
    assert server_db.get(ROLES, role.role_id).label not in old_labels


def test_update_blocked_past_timeout_gives_up(server_db):
    role = create(server_db.new_cmd(ROLES, CTX, RoleCreate(label="locked")))
    with server_db.session() as holder:
        holder.execute(select(Role).where(Role.role_id == role.role_id).with_for_update()).one()
        with pytest.raises(AuditedCommandError):
            update(server_db.update_cmd(
                ROLES, CTX, RoleUpdate(role_id=role.role_id, label="waited"), timeout=1,
            ))
        holder.rollback()
    assert server_db.get(ROLES, role.role_id).label == "locked"
    assert len(_history(server_db, "roles", role.role_id)) == 1
