"""Config file loader - loads YAML configuration from ~/.config/hookguard/config.yaml."""

import os
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from utils.constants import PathConstants

# Mapping from YAML keys to environment variable names
CONFIG_TO_ENV_MAP = {
    # Server
    "server.host": "HOOKGUARD_HOST",
    "server.port": "HOOKGUARD_PORT",
    "server.db_path": "HOOKGUARD_DB_PATH",
    # Logging
    "log.file": "HOOKGUARD_LOG_FILE",
    # Audit
    "audit.source_extensions": "HOOKGUARD_SOURCE_EXTENSIONS",
    "audit.debug_marker": "HOOKGUARD_DEBUG_MARKER",
    # Formatter
    "format.enabled": "HOOKGUARD_AUTO_FORMAT",
    "format.command": "HOOKGUARD_FORMATTER_COMMAND",
    "format.timeout": "HOOKGUARD_FORMATTER_TIMEOUT",
    # Type checker
    "typecheck.enabled": "HOOKGUARD_TYPECHECK",
    "typecheck.command": "HOOKGUARD_TYPECHECK_COMMAND",
    "typecheck.timeout": "HOOKGUARD_TYPECHECK_TIMEOUT",
    # Notifications
    "notify.on_idle": "HOOKGUARD_NOTIFY_ON_IDLE",
    # Permission policy
    "policy.shell_tools": "HOOKGUARD_SHELL_TOOLS",
    "policy.read_only_tools": "HOOKGUARD_READ_ONLY_TOOLS",
}


def flatten_dict(
    d: Dict[str, Any], parent_key: str = "", sep: str = "."
) -> Dict[str, Any]:
    """
    Flatten nested dictionary into dot-notation keys.

    Example:
        {"audit": {"debug_marker": "print("}} -> {"audit.debug_marker": "print("}
    """
    items: list[tuple[str, Any]] = []
    for k, v in d.items():
        new_key = f"{parent_key}{sep}{k}" if parent_key else k
        if isinstance(v, dict):
            items.extend(flatten_dict(v, new_key, sep=sep).items())
        else:
            items.append((new_key, v))
    return dict(items)


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load YAML config file and return flattened key-value pairs.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Dictionary of flattened config values
    """
    if config_path is None:
        config_path = PathConstants.CONFIG_PATH

    if not config_path.exists():
        return {}

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        # Config is optional, a broken file means defaults
        return {}

    if not isinstance(config, dict):
        return {}

    return flatten_dict(config)


def to_env_value(value: Any) -> str:
    """Render a YAML scalar or list the way the matching env var expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def apply_config_to_env(config: Optional[Dict[str, Any]] = None) -> None:
    """
    Load config and set environment variables (only if not already set).

    Args:
        config: Pre-loaded config dict. If None, loads from default location.
    """
    if config is None:
        config = load_config()

    if not config:
        return

    for config_key, env_var in CONFIG_TO_ENV_MAP.items():
        if config_key in config and env_var not in os.environ:
            os.environ[env_var] = to_env_value(config[config_key])
