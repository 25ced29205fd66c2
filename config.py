# Configuration management for the hookguard extension
# Loads settings from environment variables with sensible defaults

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple
from dotenv import load_dotenv
from utils.config_loader import apply_config_to_env
from utils.constants import (
    FileConstants,
    NetworkConstants,
    PathConstants,
    ProcessingConstants,
)

# Project directory - the extension's own checkout
PROJECT_DIR = Path(__file__).parent

# Load .env from the extension directory first, then from the current directory
# DON'T override existing env vars (global env takes priority)
load_dotenv(PROJECT_DIR / ".env")
load_dotenv()

# YAML config fills in whatever the environment left unset
apply_config_to_env()


def parse_bool_env(value: str, default: bool = False) -> bool:
    """
    Helper function to parse boolean environment variables consistently.

    Accepts multiple formats for better UX:
    - "true", "yes", "on", "1" → True
    - "false", "no", "off", "0" → False
    - Empty/None → default value

    Case-insensitive.
    """
    if not value:
        return default
    return value.lower() in ("true", "yes", "on", "1")


def parse_list_env(value: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Parse a comma-separated environment variable into a tuple of stripped items."""
    if not value:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def parse_extensions(value: Optional[str]) -> Tuple[str, ...]:
    """Parse file extensions, accepting both "ts" and ".ts" forms."""
    items = parse_list_env(value, FileConstants.SOURCE_EXTENSIONS)
    return tuple(ext if ext.startswith(".") else f".{ext}" for ext in items)


@dataclass
class Config:
    """Configuration settings loaded from environment variables."""

    host: str = NetworkConstants.DEFAULT_HOST
    port: int = NetworkConstants.DEFAULT_PORT
    db_path: str = str(PathConstants.DATABASE_PATH)
    log_file: Optional[str] = None

    # Audit
    source_extensions: Tuple[str, ...] = FileConstants.SOURCE_EXTENSIONS
    typecheck_extensions: Tuple[str, ...] = FileConstants.TYPECHECK_EXTENSIONS
    debug_marker: str = FileConstants.DEBUG_MARKER

    # External tools
    auto_format: bool = True
    formatter_command: str = "npx prettier --write"
    formatter_timeout: float = ProcessingConstants.FORMATTER_TIMEOUT_SECONDS
    typecheck_on_edit: bool = True
    typecheck_command: str = "npx tsc --noEmit"
    typecheck_timeout: float = ProcessingConstants.TYPECHECK_TIMEOUT_SECONDS
    notify_on_idle: bool = True

    # Permission policy
    shell_tools: Tuple[str, ...] = ("bash",)
    read_only_tools: Tuple[str, ...] = ("read", "glob", "grep", "search", "list")

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables.

        Priority: environment > .env file > ~/.config/hookguard/config.yaml > defaults.
        """
        return cls(
            host=os.getenv("HOOKGUARD_HOST", NetworkConstants.DEFAULT_HOST),
            port=int(os.getenv("HOOKGUARD_PORT", str(NetworkConstants.DEFAULT_PORT))),
            db_path=os.getenv("HOOKGUARD_DB_PATH", str(PathConstants.DATABASE_PATH)),
            log_file=os.getenv("HOOKGUARD_LOG_FILE") or None,
            source_extensions=parse_extensions(
                os.getenv("HOOKGUARD_SOURCE_EXTENSIONS")
            ),
            debug_marker=os.getenv(
                "HOOKGUARD_DEBUG_MARKER", FileConstants.DEBUG_MARKER
            ),
            auto_format=parse_bool_env(os.getenv("HOOKGUARD_AUTO_FORMAT", "true"), True),
            formatter_command=os.getenv(
                "HOOKGUARD_FORMATTER_COMMAND", "npx prettier --write"
            ),
            formatter_timeout=float(
                os.getenv(
                    "HOOKGUARD_FORMATTER_TIMEOUT",
                    str(ProcessingConstants.FORMATTER_TIMEOUT_SECONDS),
                )
            ),
            typecheck_on_edit=parse_bool_env(
                os.getenv("HOOKGUARD_TYPECHECK", "true"), True
            ),
            typecheck_command=os.getenv(
                "HOOKGUARD_TYPECHECK_COMMAND", "npx tsc --noEmit"
            ),
            typecheck_timeout=float(
                os.getenv(
                    "HOOKGUARD_TYPECHECK_TIMEOUT",
                    str(ProcessingConstants.TYPECHECK_TIMEOUT_SECONDS),
                )
            ),
            notify_on_idle=parse_bool_env(
                os.getenv("HOOKGUARD_NOTIFY_ON_IDLE", "true"), True
            ),
            shell_tools=parse_list_env(os.getenv("HOOKGUARD_SHELL_TOOLS"), ("bash",)),
            read_only_tools=parse_list_env(
                os.getenv("HOOKGUARD_READ_ONLY_TOOLS"),
                ("read", "glob", "grep", "search", "list"),
            ),
        )

    def get_formatter_argv(self) -> List[str]:
        """Split the formatter command into an argument vector (no shell involved)."""
        return shlex.split(self.formatter_command)

    def get_typecheck_argv(self) -> List[str]:
        """Split the type-check command into an argument vector (no shell involved)."""
        return shlex.split(self.typecheck_command)


config = Config.from_env()
