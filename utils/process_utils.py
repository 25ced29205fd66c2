"""Shared process utilities for running external formatters and checkers."""

import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

import psutil

from utils.colored_logger import setup_logger
from utils.errors import ProcessError, ProcessTimeoutError

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of an external command. A non-zero exit is data, not an error."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Whichever stream carried the tool's output, stdout first."""
        return self.stdout or self.stderr


def kill_process_tree(pid: int) -> None:
    """Kill a process and all of its descendants (npx spawns node children)."""
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return

    children = parent.children(recursive=True)
    for proc in children + [parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass
        except psutil.AccessDenied:
            logger.warning(f"Access denied killing PID {proc.pid}")

    psutil.wait_procs(children + [parent], timeout=1)


class ProcessRunner:
    """
    Runs external tools as argument vectors, never through a shell string.

    Output is always captured so nothing leaks into the host's terminal UI.
    """

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def run(
        self, command: str, args: Sequence[str], timeout: Optional[float] = None
    ) -> ProcessResult:
        """
        Run a command and wait for it to finish.

        Args:
            command: Executable name or path
            args: Argument list passed verbatim to the executable
            timeout: Seconds before the process tree is killed and abandoned

        Returns:
            ProcessResult with the exit code and decoded output

        Raises:
            ProcessError: If the executable cannot be started
            ProcessTimeoutError: If the timeout is exceeded
        """
        argv: List[str] = [command, *args]
        try:
            process = subprocess.Popen(
                argv,
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                shell=False,
            )
        except OSError as e:
            raise ProcessError(command, str(e)) from e

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            kill_process_tree(process.pid)
            process.communicate()
            raise ProcessTimeoutError(command, timeout)

        return ProcessResult(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
