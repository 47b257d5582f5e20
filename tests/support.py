"""Test doubles shared by the unit and integration suites."""
from __future__ import annotations

from typing import Any, List, Tuple

from cmsdb.audited import ChangeEvent, HookError, HookEvent


class FailingRecorder:
    """Recorder that refuses every event after the mutation already ran."""

    def __init__(self, message: str = "audit store unavailable") -> None:
        self.message = message
        self.calls: List[ChangeEvent] = []

    def record(self, session, event: ChangeEvent) -> None:
        self.calls.append(event)
        raise RuntimeError(self.message)


class CapturingRecorder:
    """Recorder that delegates to a real one and keeps what it was given."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.events: List[ChangeEvent] = []

    def record(self, session, event: ChangeEvent) -> None:
        self.inner.record(session, event)
        self.events.append(event)


class RecordingHookRunner:
    """Hook runner that registers hooks per (event, table) and logs every call."""

    def __init__(self, hooks=(), fail_before=(), fail_after=()) -> None:
        self.hooks = set(hooks)
        self.fail_before = set(fail_before)
        self.fail_after = set(fail_after)
        self.calls: List[Tuple[str, HookEvent, str, Any]] = []

    def has_hooks(self, event: HookEvent, table: str) -> bool:
        return (event, table) in self.hooks

    def run_before_hooks(self, event: HookEvent, table: str, entity: Any) -> None:
        self.calls.append(("before", event, table, entity))
        if (event, table) in self.fail_before:
            raise HookError("guard", event, table, "lua: status locked")

    def run_after_hooks(self, event: HookEvent, table: str, entity: Any) -> None:
        self.calls.append(("after", event, table, entity))
        if (event, table) in self.fail_after:
            raise RuntimeError("after hook crashed")

    def events(self, phase: str) -> List[HookEvent]:
        return [event for kind, event, _, _ in self.calls if kind == phase]
