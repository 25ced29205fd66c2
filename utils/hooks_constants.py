"""
Hook event constants for the hookguard extension.

This module defines all supported lifecycle events as an Enum,
providing type safety and preventing magic string usage throughout the system.
"""

from enum import Enum
from typing import Optional


class HookEvent(Enum):
    """
    Enumeration of all host lifecycle events.

    Each enum member has a string value that matches the event name the host emits.
    """

    SESSION_CREATED = "session.created"
    SESSION_IDLE = "session.idle"
    SESSION_DELETED = "session.deleted"
    FILE_EDITED = "file.edited"
    FILE_WATCHER_UPDATED = "file.watcher.updated"
    TOOL_EXECUTE_BEFORE = "tool.execute.before"
    TOOL_EXECUTE_AFTER = "tool.execute.after"
    TODO_UPDATED = "todo.updated"
    SHELL_ENV = "shell.env"
    PERMISSION_ASK = "permission.ask"
    SESSION_COMPACTING = "session.compacting"

    def __str__(self) -> str:
        """Return the string value of the hook event."""
        return self.value


# Names some host versions still emit for events that have since been renamed
EVENT_ALIASES = {
    "experimental.session.compacting": HookEvent.SESSION_COMPACTING,
}


def get_all_hook_events() -> list[str]:
    """
    Get all hook event names as strings.

    Returns:
        list[str]: List of all hook event names
    """
    return [event.value for event in HookEvent]


def resolve_hook_event(event_name: str) -> Optional[HookEvent]:
    """Map a raw event name (including aliases) to a HookEvent, or None if unknown."""
    if event_name in EVENT_ALIASES:
        return EVENT_ALIASES[event_name]
    try:
        return HookEvent(event_name)
    except ValueError:
        return None


def is_valid_hook_event(event_name: str) -> bool:
    """
    Check if a string is a valid hook event name.

    Args:
        event_name (str): Event name to validate

    Returns:
        bool: True if valid hook event name, False otherwise
    """
    return resolve_hook_event(event_name) is not None
