"""
Centralized constants for the hookguard extension.

This module consolidates all system constants, enums, and configuration values
into a single location for better maintainability and type safety.
"""

import tempfile
from enum import Enum
from pathlib import Path

# Re-export HookEvent for convenience
from utils.hooks_constants import HookEvent

__all__ = [
    "EventStatus",
    "ProcessingConstants",
    "FileConstants",
    "DatabaseConstants",
    "PathConstants",
    "DateTimeConstants",
    "NetworkConstants",
    "HTTPStatusConstants",
    "PluginConstants",
    "HookEvent",
    "get_server_url",
]


class EventStatus(Enum):
    """
    Dispatch outcome recorded in the event history.

    Provides type safety and prevents typos when working with event status values.
    """

    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        """Return the string value of the event status."""
        return self.value


class ProcessingConstants:
    """Constants related to external tool invocation and timing."""

    FORMATTER_TIMEOUT_SECONDS = 5
    TYPECHECK_TIMEOUT_SECONDS = 10
    NOTIFY_TIMEOUT_SECONDS = 5
    MAX_TYPECHECK_ERROR_LINES = 5
    MAX_MULTILINE_LOG_LINES = 3


class SessionConstants:
    """Constants related to per-session state."""

    # Sessions idle longer than this are dropped even without session.deleted
    IDLE_TTL_SECONDS = 24 * 60 * 60


class FileConstants:
    """Constants related to source file tracking and auditing."""

    SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
    TYPECHECK_EXTENSIONS = (".ts", ".tsx")
    DEBUG_MARKER = "console.log"
    CONTEXT_FILES = ("CLAUDE.md", "AGENTS.md")
    # Files that mark a project root when resolving the log location
    ROOT_MARKERS = ("package.json", "pyproject.toml", ".git")
    MAX_ROOT_SEARCH_DEPTH = 5


class PathConstants:
    """Constants related to on-disk locations."""

    DATA_DIR_NAME = ".hookguard"
    LOG_FILE_NAME = "hookguard.log"
    DATABASE_NAME = "events.db"
    # Shared across projects so the decision history survives reinstalls
    SHARED_DATA_DIR = Path.home() / DATA_DIR_NAME
    DATABASE_PATH = SHARED_DATA_DIR / DATABASE_NAME
    FALLBACK_LOG_PATH = Path(tempfile.gettempdir()) / LOG_FILE_NAME
    CONFIG_PATH = Path.home() / ".config" / "hookguard" / "config.yaml"


class DatabaseConstants:
    """Constants related to database operations and queries."""

    RECENT_EVENTS_LIMIT = 10


class DateTimeConstants:
    """Constants related to date and time formatting."""

    ISO_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class NetworkConstants:
    """Constants related to network operations."""

    DEFAULT_PORT = 12322
    DEFAULT_HOST = "127.0.0.1"
    LOCALHOST = "localhost"
    REQUEST_TIMEOUT_SECONDS = 30


class HTTPStatusConstants:
    """HTTP status code constants for better maintainability."""

    BAD_REQUEST = 400
    INTERNAL_SERVER_ERROR = 500


class PluginConstants:
    """Identity of the extension as reported to the host."""

    NAME = "hookguard"
    VERSION = "1.6.0"
    LOG_PREFIX = "[hookguard]"


# Helper functions
def get_server_url(
    port: int = NetworkConstants.DEFAULT_PORT, endpoint: str = ""
) -> str:
    """
    Generate server URL for API calls.

    Args:
        port: Server port number (defaults to DEFAULT_PORT)
        endpoint: API endpoint path (should start with / if provided)

    Returns:
        Complete server URL with endpoint
    """
    return f"http://{NetworkConstants.LOCALHOST}:{port}{endpoint}"
