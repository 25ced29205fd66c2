"""
Command signature matching for the shell security gate.

Classifies a raw shell command string as secret-exposing, destructive or
clean. Pure functions only: no I/O, no logging, no state.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple


class PatternCategory(Enum):
    """What kind of danger a signature detects."""

    SECRET = "secret"
    DESTRUCTIVE = "destructive"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


# Reason strings reported to the host when a category blocks a command
CATEGORY_REASONS = {
    PatternCategory.SECRET: "Potential secret exposure detected",
    PatternCategory.DESTRUCTIVE: "Dangerous command pattern",
}


@dataclass(frozen=True)
class PatternRule:
    """A regular-expression signature and the category it reports."""

    signature: re.Pattern
    category: PatternCategory

    def matches(self, command: str) -> bool:
        return self.signature.search(command) is not None


@dataclass(frozen=True)
class Classification:
    """Result of classifying one command string."""

    matched: bool
    category: PatternCategory
    rule: Optional[PatternRule] = None

    @property
    def reason(self) -> str:
        return CATEGORY_REASONS.get(self.category, "")


NO_MATCH = Classification(matched=False, category=PatternCategory.NONE)

SECRET_RULES: Tuple[PatternRule, ...] = (
    PatternRule(
        re.compile(r"api[_-]?key\s*[:=]\s*['\"][^'\"]{20,}['\"]", re.IGNORECASE),
        PatternCategory.SECRET,
    ),
    PatternRule(
        re.compile(r"password\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE),
        PatternCategory.SECRET,
    ),
    PatternRule(
        re.compile(r"secret\s*[:=]\s*['\"][^'\"]{10,}['\"]", re.IGNORECASE),
        PatternCategory.SECRET,
    ),
    # OpenAI-style keys
    PatternRule(re.compile(r"sk-[a-zA-Z0-9]{32,}"), PatternCategory.SECRET),
    # GitHub personal access tokens
    PatternRule(re.compile(r"ghp_[a-zA-Z0-9]{36}"), PatternCategory.SECRET),
)

DESTRUCTIVE_RULES: Tuple[PatternRule, ...] = (
    PatternRule(re.compile(r"rm\s+-rf\s+/"), PatternCategory.DESTRUCTIVE),
    PatternRule(re.compile(r">\s*/dev/null.*rm"), PatternCategory.DESTRUCTIVE),
    PatternRule(re.compile(r"curl.*\|.*sh"), PatternCategory.DESTRUCTIVE),
    PatternRule(re.compile(r"wget.*\|.*sh"), PatternCategory.DESTRUCTIVE),
)

# Secrets first; first match wins
DEFAULT_RULES: Tuple[PatternRule, ...] = SECRET_RULES + DESTRUCTIVE_RULES

# Extra signature used by is_command_safe() for tool arguments
EVAL_RULE = PatternRule(re.compile(r"eval\s*\("), PatternCategory.DESTRUCTIVE)


class PatternMatcher:
    """Ordered rule set evaluated with first-match short-circuit."""

    def __init__(self, rules: Sequence[PatternRule] = DEFAULT_RULES):
        self.rules: Tuple[PatternRule, ...] = tuple(rules)

    def classify(self, command: str) -> Classification:
        """
        Classify a command string.

        Args:
            command: Raw shell command text

        Returns:
            Classification of the first matching rule, or NO_MATCH

        Raises:
            TypeError: If command is not a string. Callers must treat this as
                a possible match, never as clean.
        """
        if not isinstance(command, str):
            raise TypeError(
                f"command must be a string, got {type(command).__name__}"
            )

        for rule in self.rules:
            if rule.matches(command):
                return Classification(matched=True, category=rule.category, rule=rule)
        return NO_MATCH


def is_command_safe(command: str) -> bool:
    """Return False if the command matches a destructive signature or calls eval()."""
    for rule in DESTRUCTIVE_RULES + (EVAL_RULE,):
        if rule.matches(command):
            return False
    return True


# Any recursive force delete, root or not. Only warned about after execution.
RECURSIVE_DELETE = re.compile(r"rm\s+-rf")


def needs_post_execution_warning(command: str) -> bool:
    """True if an already-executed command deserves a destructive-command warning."""
    return bool(RECURSIVE_DELETE.search(command)) or not is_command_safe(command)
