"""Errors raised by the audited command engine.

Every error names the table and operation so callers can log it without
looking inside; the underlying cause is chained via ``__cause__``.
"""
from __future__ import annotations

from typing import Optional

from .events import Operation


class TransactionCommitError(RuntimeError):
    """The work succeeded but the final COMMIT did not; nothing was persisted."""


class AuditedCommandError(RuntimeError):
    def __init__(
        self,
        table_name: str,
        operation: Operation,
        stage: str,
        cause: Optional[BaseException] = None,
        *,
        record_id: Optional[str] = None,
    ) -> None:
        self.table_name = table_name
        self.operation = operation
        self.stage = stage
        self.record_id = record_id
        target = table_name if record_id is None else f"{table_name} {record_id!r}"
        message = f"{operation.value} {target}: {stage}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class RecordNotFoundError(AuditedCommandError):
    """The target row of an update or delete does not exist."""


class MutationError(AuditedCommandError):
    """The command's own write failed (constraint violation, lost connection, ...)."""


class AuditRecordError(AuditedCommandError):
    """The change event could not be built or persisted; the mutation was rolled back."""


class CommandTimeoutError(AuditedCommandError):
    """The command ran past its deadline; the transaction was rolled back."""
