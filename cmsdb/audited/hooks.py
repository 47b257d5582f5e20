"""Plugin hook integration for audited mutations.

Before-hooks run inside the mutation's transaction and abort it by raising;
after-hooks run once the transaction has committed and cannot undo it.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol


class HookEvent(str, Enum):
    BEFORE_CREATE = "before_create"
    AFTER_CREATE = "after_create"
    BEFORE_UPDATE = "before_update"
    AFTER_UPDATE = "after_update"
    BEFORE_DELETE = "before_delete"
    AFTER_DELETE = "after_delete"
    BEFORE_PUBLISH = "before_publish"
    AFTER_PUBLISH = "after_publish"
    BEFORE_ARCHIVE = "before_archive"
    AFTER_ARCHIVE = "after_archive"


VALID_HOOK_EVENTS: Dict[str, HookEvent] = {event.value: event for event in HookEvent}

_BEFORE_TO_AFTER: Dict[HookEvent, HookEvent] = {
    HookEvent.BEFORE_CREATE: HookEvent.AFTER_CREATE,
    HookEvent.BEFORE_UPDATE: HookEvent.AFTER_UPDATE,
    HookEvent.BEFORE_DELETE: HookEvent.AFTER_DELETE,
    HookEvent.BEFORE_PUBLISH: HookEvent.AFTER_PUBLISH,
    HookEvent.BEFORE_ARCHIVE: HookEvent.AFTER_ARCHIVE,
}

STATUS_TRANSITION_TABLE = "content_data"


class HookRunner(Protocol):
    def has_hooks(self, event: HookEvent, table: str) -> bool: ...

    def run_before_hooks(self, event: HookEvent, table: str, entity: Any) -> None: ...

    def run_after_hooks(self, event: HookEvent, table: str, entity: Any) -> None: ...


class HookError(Exception):
    """A plugin hook refused a mutation.

    ``str()`` is safe to show to clients; the plugin's own message is only
    available through ``log_message()``.
    """

    def __init__(self, plugin_name: str, event: HookEvent, table: str, message: str = "") -> None:
        self.plugin_name = plugin_name
        self.event = event
        self.table = table
        self._original_message = message
        super().__init__(f"operation blocked by plugin {plugin_name!r}")

    def log_message(self) -> str:
        return self._original_message


def before_to_after_event(event: HookEvent) -> HookEvent:
    return _BEFORE_TO_AFTER.get(event, event)


def detect_status_transition(
    table: str,
    before: Optional[Mapping[str, Any]],
    params: Optional[Mapping[str, Any]],
) -> List[HookEvent]:
    """Return the extra before-events implied by a content status change.

    Only ``content_data`` updates whose params set ``status`` qualify; a
    partial update without ``status`` or a non-string status yields nothing.
    """
    if table != STATUS_TRANSITION_TABLE:
        return []
    if before is None or params is None:
        return []
    new_status = params.get("status")
    if not isinstance(new_status, str):
        return []
    old_status = before.get("status")

    events: List[HookEvent] = []
    if new_status == "published" and old_status != "published":
        events.append(HookEvent.BEFORE_PUBLISH)
    if new_status == "archived" and old_status != "archived":
        events.append(HookEvent.BEFORE_ARCHIVE)
    return events
