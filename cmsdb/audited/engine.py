"""
Audited command engine.

``create``, ``update`` and ``delete`` wrap a command's mutation and its change
event in one transaction: the recorder writes through the same session as
the mutation, so both commit together or neither does. A mutation is never
reported as successful unless its change event was committed with it.

Each command carries a timeout (``DEFAULT_COMMAND_TIMEOUT`` unless set). The
backend bounds its statements by it and the engine checks the deadline before
the write and again before COMMIT; running past it rolls everything back.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, List, Mapping, Optional, TypeVar

from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session, sessionmaker

from .contracts import CreateCommand, DeleteCommand, UpdateCommand
from .errors import (
    AuditedCommandError,
    AuditRecordError,
    CommandTimeoutError,
    MutationError,
    RecordNotFoundError,
    TransactionCommitError,
)
from .events import Action, ChangeEvent, Operation
from .hooks import HookEvent, HookRunner, before_to_after_event, detect_status_transition
from .serialize import to_state

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def with_transaction(session_factory: sessionmaker, fn: Callable[[Session], T]) -> T:
    """Run ``fn`` in a fresh session inside a single transaction.

    Commits when ``fn`` returns, rolls back when it raises (the exception
    propagates unchanged). A failing COMMIT raises ``TransactionCommitError``.
    """
    with session_factory() as session:
        transaction = session.begin()
        try:
            result = fn(session)
        except BaseException:
            try:
                transaction.rollback()
            except Exception:
                logger.exception("rollback failed; re-raising the original error")
            raise
        try:
            transaction.commit()
        except Exception as exc:
            raise TransactionCommitError(f"commit failed: {exc}") from exc
    return result


def _run(cmd: Any, operation: Operation, body: Callable[[Session], T]) -> T:
    table = cmd.table_name
    try:
        result = with_transaction(cmd.connection, body)
    except TransactionCommitError as exc:
        logger.warning("audited %s on %s failed at commit: %s", operation.value, table, exc)
        raise AuditedCommandError(table, operation, "commit", exc.__cause__ or exc) from exc
    except Exception as exc:
        logger.warning("audited %s on %s rolled back: %s", operation.value, table, exc)
        raise
    logger.debug("audited %s on %s committed", operation.value, table)
    return result


def _deadline(cmd: Any) -> Optional[float]:
    timeout = cmd.timeout
    return None if timeout is None else time.monotonic() + timeout


def _check_deadline(
    expires_at: Optional[float], table: str, operation: Operation, record_id: Optional[str] = None
) -> Optional[float]:
    """Raise once ``expires_at`` has passed; otherwise return the seconds left."""
    if expires_at is None:
        return None
    remaining = expires_at - time.monotonic()
    if remaining <= 0:
        raise CommandTimeoutError(table, operation, "deadline exceeded", record_id=record_id)
    return remaining


def _bound_session(
    cmd: Any, session: Session, expires_at: Optional[float], operation: Operation, record_id: Optional[str] = None
) -> None:
    remaining = _check_deadline(expires_at, cmd.table_name, operation, record_id)
    if remaining is None:
        return
    try:
        cmd.apply_timeout(session, remaining)
    except Exception as exc:
        raise AuditedCommandError(cmd.table_name, operation, "apply timeout", exc, record_id=record_id) from exc


def _marshal(table: str, operation: Operation, stage: str, value: Any, record_id: Optional[str] = None) -> Any:
    try:
        return to_state(value)
    except Exception as exc:
        raise AuditRecordError(table, operation, stage, exc, record_id=record_id) from exc


def _get_before(cmd: Any, session: Session, operation: Operation) -> Any:
    table = cmd.table_name
    record_id = cmd.get_id()
    try:
        before = cmd.get_before(session)
    except NoResultFound as exc:
        raise RecordNotFoundError(table, operation, "get before state", exc, record_id=record_id) from exc
    except Exception as exc:
        raise AuditedCommandError(table, operation, "get before state", exc, record_id=record_id) from exc
    if before is None:
        raise RecordNotFoundError(table, operation, "get before state: no such row", record_id=record_id)
    return before


def _record(cmd: Any, session: Session, event: ChangeEvent) -> None:
    try:
        cmd.recorder.record(session, event)
    except Exception as exc:
        raise AuditRecordError(
            event.table_name, event.operation, "record change event", exc, record_id=event.record_id
        ) from exc


def _run_before_hooks(runner: Optional[HookRunner], events: Iterable[HookEvent], table: str, entity: Any) -> None:
    if runner is None:
        return
    for event in events:
        if runner.has_hooks(event, table):
            runner.run_before_hooks(event, table, entity)


def _fire_after_hooks(runner: Optional[HookRunner], events: Iterable[HookEvent], table: str, entity: Any) -> None:
    # The transaction is already committed; a failing hook cannot undo it.
    if runner is None:
        return
    for event in events:
        if not runner.has_hooks(event, table):
            continue
        try:
            runner.run_after_hooks(event, table, entity)
        except Exception:
            logger.exception("after hook %s on %s failed", event.value, table)


def create(cmd: CreateCommand[R]) -> R:
    """Insert a row and its change event atomically; return the inserted row.

    The record id is read from the returned row, never predicted from params.
    """
    table = cmd.table_name
    runner = cmd.hook_runner
    created_state: Any = None
    expires_at = _deadline(cmd)

    def body(session: Session) -> R:
        nonlocal created_state
        _bound_session(cmd, session, expires_at, Operation.INSERT)
        try:
            created = cmd.execute(session)
        except Exception as exc:
            raise MutationError(table, Operation.INSERT, "execute create", exc) from exc

        created_state = _marshal(table, Operation.INSERT, "marshal created entity", created)
        _run_before_hooks(runner, [HookEvent.BEFORE_CREATE], table, created_state)

        try:
            record_id = cmd.get_id(created)
        except Exception as exc:
            raise AuditRecordError(table, Operation.INSERT, "derive record id", exc) from exc

        _record(cmd, session, ChangeEvent(
            table_name=table,
            record_id=record_id,
            operation=Operation.INSERT,
            action=Action.CREATE,
            new_values=created_state,
            audit=cmd.audit_context,
        ))
        _check_deadline(expires_at, table, Operation.INSERT, record_id)
        return created

    result = _run(cmd, Operation.INSERT, body)
    _fire_after_hooks(runner, [HookEvent.AFTER_CREATE], table, created_state)
    return result


def update(cmd: UpdateCommand[R]) -> None:
    """Capture the before-state, apply the update and record both atomically."""
    table = cmd.table_name
    runner = cmd.hook_runner
    record_id = cmd.get_id()
    before_state: Any = None
    transitions: List[HookEvent] = []
    expires_at = _deadline(cmd)

    def body(session: Session) -> None:
        nonlocal before_state, transitions
        _bound_session(cmd, session, expires_at, Operation.UPDATE, record_id)
        before = _get_before(cmd, session, Operation.UPDATE)
        # Snapshot now: the update below may refresh the same identity-map object.
        before_state = _marshal(table, Operation.UPDATE, "marshal before state", before, record_id)
        _run_before_hooks(runner, [HookEvent.BEFORE_UPDATE], table, before_state)

        params_state = _marshal(table, Operation.UPDATE, "marshal update params", cmd.params(), record_id)
        if runner is not None and isinstance(before_state, Mapping) and isinstance(params_state, Mapping):
            transitions = detect_status_transition(table, before_state, params_state)
            _run_before_hooks(runner, transitions, table, before_state)

        _check_deadline(expires_at, table, Operation.UPDATE, record_id)
        try:
            cmd.execute(session)
        except Exception as exc:
            raise MutationError(table, Operation.UPDATE, "execute update", exc, record_id=record_id) from exc

        _record(cmd, session, ChangeEvent(
            table_name=table,
            record_id=record_id,
            operation=Operation.UPDATE,
            action=Action.UPDATE,
            old_values=before_state,
            new_values=params_state,
            audit=cmd.audit_context,
        ))
        _check_deadline(expires_at, table, Operation.UPDATE, record_id)

    _run(cmd, Operation.UPDATE, body)
    after_events = [HookEvent.AFTER_UPDATE] + [before_to_after_event(e) for e in transitions]
    _fire_after_hooks(runner, after_events, table, before_state)


def delete(cmd: DeleteCommand[R]) -> None:
    """Capture the before-state, delete the row and record the deletion atomically."""
    table = cmd.table_name
    runner = cmd.hook_runner
    record_id = cmd.get_id()
    before_state: Any = None
    expires_at = _deadline(cmd)

    def body(session: Session) -> None:
        nonlocal before_state
        _bound_session(cmd, session, expires_at, Operation.DELETE, record_id)
        before = _get_before(cmd, session, Operation.DELETE)
        before_state = _marshal(table, Operation.DELETE, "marshal before state", before, record_id)
        _run_before_hooks(runner, [HookEvent.BEFORE_DELETE], table, before_state)

        _check_deadline(expires_at, table, Operation.DELETE, record_id)
        try:
            cmd.execute(session)
        except Exception as exc:
            raise MutationError(table, Operation.DELETE, "execute delete", exc, record_id=record_id) from exc

        _record(cmd, session, ChangeEvent(
            table_name=table,
            record_id=record_id,
            operation=Operation.DELETE,
            action=Action.DELETE,
            old_values=before_state,
            audit=cmd.audit_context,
        ))
        _check_deadline(expires_at, table, Operation.DELETE, record_id)

    _run(cmd, Operation.DELETE, body)
    _fire_after_hooks(runner, [HookEvent.AFTER_DELETE], table, before_state)
