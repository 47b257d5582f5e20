"""Shapes that entity code implements so one engine can drive every mutation.

``R`` is whatever a backend returns for a row of the entity (an ORM
instance in this repository). The engine only ever calls the members below;
it never inspects which backend a command or recorder belongs to.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from .context import AuditContext
from .events import ChangeEvent
from .hooks import HookRunner

R = TypeVar("R")

# Seconds an audited command may take when it does not set its own timeout.
DEFAULT_COMMAND_TIMEOUT = 30.0


class ChangeEventRecorder(Protocol):
    def record(self, session: Session, event: ChangeEvent) -> None:
        """Persist ``event`` using the mutation's own session."""
        ...


class _CommandBase(Protocol):
    table_name: str
    audit_context: AuditContext
    recorder: ChangeEventRecorder
    hook_runner: Optional[HookRunner]
    connection: sessionmaker
    # None disables the deadline.
    timeout: Optional[float]

    def apply_timeout(self, session: Session, seconds: float) -> None:
        """Bound how long the database may block this transaction's statements."""
        ...


class CreateCommand(_CommandBase, Protocol[R]):
    def params(self) -> Any: ...

    def execute(self, session: Session) -> R: ...

    def get_id(self, row: R) -> str:
        """Identity of a freshly inserted row, read from the row itself."""
        ...


class UpdateCommand(_CommandBase, Protocol[R]):
    def params(self) -> Any: ...

    def get_id(self) -> str:
        """Identity of the target row, taken from the params."""
        ...

    def get_before(self, session: Session) -> R: ...

    def execute(self, session: Session) -> None: ...


class DeleteCommand(_CommandBase, Protocol[R]):
    def get_id(self) -> str: ...

    def get_before(self, session: Session) -> R: ...

    def execute(self, session: Session) -> None: ...
