"""
Simple colored logging utility that matches uvicorn's format.
Provides consistent spacing and per-component coloring.
"""

import logging
import os
import sys
import re
from pathlib import Path
from datetime import datetime
from utils.constants import DateTimeConstants


def redact_sensitive_data(text: str) -> str:
    """
    Redact sensitive data from log messages to prevent credential exposure.

    Blocked commands are logged for audit, and the most common reason a
    command is blocked is that it carries a secret, so this runs on every record.

    Redacts:
    - API keys starting with 'sk-' (OpenAI/OpenRouter/Anthropic style)
    - GitHub personal access tokens ('ghp_')
    - Bearer tokens in Authorization headers
    - Long hexadecimal strings (40+ chars, likely keys)
    - Assignments to sensitive names (API_KEY, TOKEN, SECRET, PASSWORD)

    Args:
        text: Log message text to redact

    Returns:
        Text with sensitive data replaced by ***REDACTED***
    """
    if not text:
        return text

    text = re.sub(r"sk-[a-zA-Z0-9_-]{20,}", "sk-***REDACTED***", text)
    text = re.sub(r"ghp_[a-zA-Z0-9]{20,}", "ghp_***REDACTED***", text)

    text = re.sub(
        r"Bearer\s+[a-zA-Z0-9_-]{20,}",
        "Bearer ***REDACTED***",
        text,
        flags=re.IGNORECASE,
    )

    text = re.sub(r"\b[a-f0-9]{40,}\b", "***REDACTED***", text, flags=re.IGNORECASE)

    # Matches patterns like: API_KEY=value, "TOKEN": "value", password='value'
    text = re.sub(
        r'(API[_-]?KEY|TOKEN|SECRET|PASSWORD)(["\']?\s*[:=]\s*["\']?)([^\s"\',}\]]+)',
        r"\1\2***REDACTED***",
        text,
        flags=re.IGNORECASE,
    )

    return text


class ColoredFormatter(logging.Formatter):
    """Custom formatter that matches uvicorn's spacing and adds colors."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # cyan
        "INFO": "\033[32m",  # green
        "WARNING": "\033[33m",  # yellow
        "ERROR": "\033[31m",  # red
        "CRITICAL": "\033[35m",  # magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        """
        Format log record with colors matching uvicorn style.

        Args:
            record: LogRecord instance to format

        Returns:
            Formatted log message with ANSI color codes
        """
        level_color = self.COLORS.get(record.levelname, "")
        component = record.name
        message = redact_sensitive_data(record.getMessage())

        # Format with proper spacing like uvicorn (5 spaces after colon)
        return f"{level_color}{record.levelname}:{self.RESET}     {component}:{message}"


class PlainFormatter(logging.Formatter):
    """Plain formatter for file logging (no colors)."""

    def format(self, record):
        component = record.name
        message = redact_sensitive_data(record.getMessage())
        timestamp = datetime.fromtimestamp(record.created).strftime(
            DateTimeConstants.ISO_DATETIME_FORMAT
        )

        # Format: timestamp LEVEL component:message
        return f"{timestamp} {record.levelname:8} {component}:{message}"


class SinkFormatter(logging.Formatter):
    """
    Formatter for the project-local hook log.

    Format: [YYYY-MM-DD HH:MM:SS] [LEVEL] message, with the level padded to five
    characters so WARN and ERROR lines align.
    """

    LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}

    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime(
            DateTimeConstants.ISO_DATETIME_FORMAT
        )
        level = self.LEVEL_NAMES.get(record.levelname, record.levelname)
        message = redact_sensitive_data(record.getMessage())
        return f"[{timestamp}] [{level:<5}] {message}"


def setup_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Records propagate to the root handlers installed by configure_root_logging(),
    so a module logger never carries a handler of its own.
    """
    configure_root_logging()
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    return logger


def setup_file_logging(log_file: Path) -> str:
    """
    Attach a plain-text file handler to the root logger.

    Args:
        log_file: File to append server logs to

    Returns:
        Path to the log file
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Check if file handler already exists for this file
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == str(
            log_file.absolute()
        ):
            return str(log_file)

    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setFormatter(PlainFormatter())
    root_logger.addHandler(file_handler)

    return str(log_file)


def configure_root_logging():
    """Configure root logging to match uvicorn style."""
    # Check if we're in file-only mode (server with LOG_FILE env var)
    log_file = os.getenv("LOG_FILE")

    root_logger = logging.getLogger()
    formatters = (ColoredFormatter, PlainFormatter)
    if not any(isinstance(h.formatter, formatters) for h in root_logger.handlers):
        # Only add console handler if NOT in file-only mode
        if not log_file:
            # stderr, because hooks.py answers the host on stdout
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(ColoredFormatter())
            root_logger.addHandler(handler)
        else:
            setup_file_logging(Path(log_file))

        root_logger.setLevel(logging.INFO)
