"""Exception types shared across the hookguard extension."""


class HookGuardError(Exception):
    """Base class for all hookguard errors."""


class ValidationError(HookGuardError, ValueError):
    """Raised when a path, branch name or other input fails an allowlist check."""


class ProcessError(HookGuardError):
    """Raised when an external tool cannot be started at all."""

    def __init__(self, command: str, message: str):
        super().__init__(f"{command}: {message}")
        self.command = command


class ProcessTimeoutError(ProcessError):
    """Raised when an external tool exceeds its time budget and is abandoned."""

    def __init__(self, command: str, timeout: float):
        super().__init__(command, f"timed out after {timeout}s")
        self.timeout = timeout
