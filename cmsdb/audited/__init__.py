"""
Audited command engine.

Every create/update/delete in the system goes through ``create``,
``update`` or ``delete`` here, which run the mutation and persist its
``ChangeEvent`` in one transaction.
"""
from .context import AuditContext
from .contracts import DEFAULT_COMMAND_TIMEOUT, ChangeEventRecorder, CreateCommand, DeleteCommand, UpdateCommand
from .engine import create, delete, update, with_transaction
from .errors import (
    AuditedCommandError,
    AuditRecordError,
    CommandTimeoutError,
    MutationError,
    RecordNotFoundError,
    TransactionCommitError,
)
from .events import Action, ChangeEvent, Operation
from .hlc import HLC, hlc_now, hlc_update
from .hooks import (
    VALID_HOOK_EVENTS,
    HookError,
    HookEvent,
    HookRunner,
    before_to_after_event,
    detect_status_transition,
)

__all__ = [
    "AuditContext",
    "ChangeEventRecorder",
    "DEFAULT_COMMAND_TIMEOUT",
    "CreateCommand",
    "UpdateCommand",
    "DeleteCommand",
    "create",
    "update",
    "delete",
    "with_transaction",
    "AuditedCommandError",
    "AuditRecordError",
    "CommandTimeoutError",
    "MutationError",
    "RecordNotFoundError",
    "TransactionCommitError",
    "Action",
    "ChangeEvent",
    "Operation",
    "HLC",
    "hlc_now",
    "hlc_update",
    "VALID_HOOK_EVENTS",
    "HookError",
    "HookEvent",
    "HookRunner",
    "before_to_after_event",
    "detect_status_transition",
]
