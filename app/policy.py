"""
Permission policy for tool invocations.

Two entry points share one pattern matcher:

- check_shell() is the early gate run on tool.execute.before. It only looks
  at shell commands and stops dangerous ones before they have side effects.
- decide() answers permission.ask. It auto-approves safe operations, blocks
  dangerous shell commands and defers everything else to the human operator.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from app.patterns import PatternMatcher
from utils.log_sink import Sink
from utils.constants import PluginConstants

READ_ONLY_TOOLS = ("read", "glob", "grep", "search", "list")
SHELL_TOOLS = ("bash",)

# Anchored at the start of the command
FORMATTER_PREFIX = re.compile(
    r"^(npx )?(prettier|biome|black|gofmt|rustfmt|swift-format)"
)
TEST_RUNNER_PREFIX = re.compile(
    r"^(npm test|npx vitest|npx jest|pytest|go test|cargo test)"
)

REASON_READ_ONLY = "Read-only operation"
REASON_FORMATTER = "Formatter execution"
REASON_TEST = "Test execution"
REASON_UNCLASSIFIED = "Command could not be classified"


class Verdict(Enum):
    """The three possible outcomes of a permission check."""

    APPROVE = "approve"
    BLOCK = "block"
    DEFER = "defer"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Decision:
    """A verdict plus the human-readable reason behind it."""

    verdict: Verdict
    reason: str = ""

    def __post_init__(self):
        if self.verdict is Verdict.BLOCK and not self.reason:
            raise ValueError("A blocking decision must carry a reason")

    @classmethod
    def approve(cls, reason: str) -> "Decision":
        return cls(Verdict.APPROVE, reason)

    @classmethod
    def block(cls, reason: str) -> "Decision":
        return cls(Verdict.BLOCK, reason)

    @classmethod
    def defer(cls, reason: str = "") -> "Decision":
        return cls(Verdict.DEFER, reason)

    @property
    def approved(self) -> Optional[bool]:
        """True, False, or None when the human operator should decide."""
        if self.verdict is Verdict.APPROVE:
            return True
        if self.verdict is Verdict.BLOCK:
            return False
        return None

    def to_response(self) -> Dict[str, Any]:
        """Render the shape the host expects from permission.ask."""
        response: Dict[str, Any] = {"approved": self.approved}
        if self.reason:
            response["reason"] = self.reason
        return response


@dataclass(frozen=True)
class GateResult:
    """Outcome of the early shell gate."""

    blocked: bool
    reason: str = ""

    def to_response(self) -> Dict[str, Any]:
        if not self.blocked:
            return {"blocked": False}
        return {"blocked": True, "reason": self.reason}


ALLOW = GateResult(blocked=False)


def extract_command(args: Any) -> Any:
    """
    Pull the command out of a tool's arguments.

    Bare strings are the command itself. A mapping's "command" field is
    returned untouched even when it is not a string, so a malformed command
    reaches the classifier and fails closed. No command at all yields "".
    """
    if isinstance(args, dict):
        command = args.get("command")
        return "" if command is None else command
    if isinstance(args, str):
        return args
    return ""


class PermissionPolicy:
    """Decides approve / block / defer for a single tool invocation."""

    def __init__(
        self,
        matcher: Optional[PatternMatcher] = None,
        sink: Optional[Sink] = None,
        read_only_tools: Iterable[str] = READ_ONLY_TOOLS,
        shell_tools: Iterable[str] = SHELL_TOOLS,
    ):
        self.matcher = matcher or PatternMatcher()
        self.sink = sink
        self.read_only_tools = frozenset(read_only_tools)
        self.shell_tools = frozenset(shell_tools)

    def _log(self, level: str, message: str) -> None:
        if self.sink is not None:
            self.sink.append(level, f"{PluginConstants.LOG_PREFIX} {message}")

    def is_shell(self, tool_name: str) -> bool:
        return tool_name in self.shell_tools

    def check_shell(self, tool_name: str, args: Any) -> GateResult:
        """
        Early gate for shell execution.

        Only shell tools with a non-empty command are inspected. A matching
        signature blocks the command; a classifier failure blocks too.
        """
        if not self.is_shell(tool_name):
            return ALLOW
        command = extract_command(args)
        if isinstance(command, str) and not command:
            return ALLOW

        try:
            result = self.matcher.classify(command)
        except Exception as e:
            self._log("error", f"Security: command classification failed ({e}), blocking")
            return GateResult(blocked=True, reason=REASON_UNCLASSIFIED)

        if result.matched:
            self._log("error", f"Security: {result.reason} ({result.category}), command blocked")
            return GateResult(blocked=True, reason=result.reason)
        return ALLOW

    def decide(self, tool_name: str, args: Any) -> Decision:
        """
        Decide whether a tool invocation needs the operator's approval.

        Read-only tools are approved by name alone, without looking at their
        arguments. For shell tools the signature check runs before the
        formatter and test-runner allow-lists, so an allow-listed prefix
        cannot smuggle a dangerous tail through.
        """
        command = extract_command(args)

        if tool_name in self.read_only_tools:
            return Decision.approve(REASON_READ_ONLY)

        if not self.is_shell(tool_name):
            return Decision.defer()

        try:
            result = self.matcher.classify(command)
        except Exception as e:
            self._log("error", f"Security: command classification failed ({e}), deferring to operator")
            return Decision.defer(REASON_UNCLASSIFIED)

        if result.matched:
            self._log("error", f"Security: {result.reason} ({result.category}), permission denied")
            return Decision.block(result.reason)

        if FORMATTER_PREFIX.match(command):
            return Decision.approve(REASON_FORMATTER)

        if TEST_RUNNER_PREFIX.match(command):
            return Decision.approve(REASON_TEST)

        return Decision.defer()
