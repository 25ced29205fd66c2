"""
Input validation for values that end up in external command argument lists.

Uses an allowlist approach: only known-safe characters are permitted and
anything else is rejected outright rather than sanitized.
"""

import re

from utils.errors import ValidationError

# Alphanumeric, dash, underscore, dot, forward slash, backslash, space.
# Always applied with fullmatch so a trailing newline cannot slip through.
SAFE_PATH_PATTERN = re.compile(r"[a-zA-Z0-9_\-./\\ ]+")
# Paths minus backslash and space
SAFE_BRANCH_PATTERN = re.compile(r"[a-zA-Z0-9_\-./]+")


def validate_path(path: str) -> str:
    """
    Validate a file or directory path before passing it to a subprocess.

    Args:
        path: Path to validate

    Returns:
        The path, unchanged

    Raises:
        ValidationError: If the path contains characters outside the allowlist
    """
    if not isinstance(path, str) or not SAFE_PATH_PATTERN.fullmatch(path):
        raise ValidationError("Invalid path: contains unsafe characters")
    return path


def validate_branch_name(branch: str) -> str:
    """Validate a git branch name before passing it to a subprocess."""
    if not isinstance(branch, str) or not SAFE_BRANCH_PATTERN.fullmatch(branch):
        raise ValidationError("Invalid branch name: contains unsafe characters")
    return branch
