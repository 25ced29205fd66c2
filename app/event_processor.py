# Event dispatcher for the hookguard extension
# Routes host lifecycle events to their handlers and returns host-shaped responses

import asyncio
import functools
import os
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from app.audit import AuditEngine, has_extension
from app.patterns import needs_post_execution_warning
from app.policy import REASON_UNCLASSIFIED, PermissionPolicy, extract_command
from app.session_state import SessionStore
from app.types import HookEventData
from config import Config, config as default_config
from utils.colored_logger import setup_logger, configure_root_logging
from utils.constants import FileConstants, PluginConstants, ProcessingConstants
from utils.errors import ProcessError, ProcessTimeoutError, ValidationError
from utils.hooks_constants import HookEvent, resolve_hook_event
from utils.log_sink import LogSink, Sink, summarize_lines
from utils.process_utils import ProcessResult, ProcessRunner
from utils.validation import validate_path

configure_root_logging()
logger = setup_logger(__name__)

Handler = Callable[[HookEventData], Awaitable[Any]]
EnvProvider = Callable[[Path], Mapping[str, str]]

EDIT_TOOLS = ("edit", "write")

COMPACTION_PROMPT = (
    "Focus on preserving: 1) Current task status and progress, 2) Key decisions made, "
    "3) Files created/modified, 4) Remaining work items, 5) Any security concerns flagged. "
    "Discard: verbose tool outputs, intermediate exploration, redundant file listings."
)

NOTIFY_ARGV = [
    "osascript",
    "-e",
    f'display notification "Task completed!" with title "{PluginConstants.NAME}"',
]


def get_file_path(args: Any) -> str:
    """Find the edited file's path in tool arguments, whatever the tool calls it."""
    if not isinstance(args, dict):
        return ""
    for key in ("filePath", "file_path", "path"):
        value = args.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def get_exit_code(payload: Mapping[str, Any]) -> Optional[int]:
    """Exit code of a finished shell command, if the host reported one."""
    exit_code = payload.get("exit_code")
    if exit_code is None:
        output = payload.get("output")
        if isinstance(output, dict):
            exit_code = output.get("exitCode", output.get("exit_code"))
    return exit_code if isinstance(exit_code, int) else None


class EventDispatcher:
    """
    Maps each HookEvent to an async handler.

    Handlers never raise to the host: dispatch() catches every failure, logs
    it and returns the safe default for the event kind. Per-session state lives
    in the injected SessionStore, so two sessions never see each other's files.
    """

    def __init__(
        self,
        settings: Optional[Config] = None,
        store: Optional[SessionStore] = None,
        sink: Optional[Sink] = None,
        policy: Optional[PermissionPolicy] = None,
        audit: Optional[AuditEngine] = None,
        runner: Optional[ProcessRunner] = None,
        env_provider: Optional[EnvProvider] = None,
    ):
        self.settings = settings or default_config
        self.store = store or SessionStore()
        self.sink = sink or LogSink(
            Path(self.settings.log_file) if self.settings.log_file else None
        )
        self.policy = policy or PermissionPolicy(
            sink=self.sink,
            read_only_tools=self.settings.read_only_tools,
            shell_tools=self.settings.shell_tools,
        )
        self.audit = audit or AuditEngine(
            marker=self.settings.debug_marker,
            extensions=self.settings.source_extensions,
        )
        self.runner = runner or ProcessRunner()
        self.env_provider = env_provider

        self._handlers: Dict[HookEvent, Handler] = {
            HookEvent.SESSION_CREATED: self.on_session_created,
            HookEvent.SESSION_IDLE: self.on_session_idle,
            HookEvent.SESSION_DELETED: self.on_session_deleted,
            HookEvent.FILE_EDITED: self.on_file_edited,
            HookEvent.FILE_WATCHER_UPDATED: self.on_file_watcher_updated,
            HookEvent.TOOL_EXECUTE_BEFORE: self.on_tool_execute_before,
            HookEvent.TOOL_EXECUTE_AFTER: self.on_tool_execute_after,
            HookEvent.TODO_UPDATED: self.on_todo_updated,
            HookEvent.SHELL_ENV: self.on_shell_env,
            HookEvent.PERMISSION_ASK: self.on_permission_ask,
            HookEvent.SESSION_COMPACTING: self.on_session_compacting,
        }

    def log(self, level: str, message: str) -> None:
        self.sink.append(level, f"{PluginConstants.LOG_PREFIX} {message}")

    # Dispatch

    async def dispatch(self, event: HookEventData) -> Any:
        """Run the handler for an event and return its host response."""
        handler = self._handlers.get(event.kind)
        if handler is None:
            logger.info(f"No handler for {event.kind.value} (session: {event.session_id})")
            return None

        logger.info(f"Processing {event.kind.value} event for session {event.session_id}")
        try:
            return await handler(event)
        except Exception as e:
            logger.error(f"Handler for {event.kind.value} failed: {e}")
            self.log("error", f"Hook {event.kind.value} failed: {e}")
            return self.safe_default(event)

    async def dispatch_raw(
        self, event_name: str, session_id: str, payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Dispatch an event given its raw host name. Unknown names are ignored."""
        kind = resolve_hook_event(event_name)
        if kind is None:
            logger.warning(
                f"Unknown hook event received: {event_name} (session: {session_id})"
            )
            return None
        return await self.dispatch(HookEventData.create(kind, session_id, payload))

    def safe_default(self, event: HookEventData) -> Any:
        """
        Response returned when a handler fails.

        Permission checks defer to the operator. The shell gate blocks, since a
        command that could not be classified may be dangerous.
        """
        if event.kind is HookEvent.PERMISSION_ASK:
            return {"approved": None}
        if event.kind is HookEvent.TOOL_EXECUTE_BEFORE:
            if self.policy.is_shell(str(event.get("tool", ""))):
                return {"blocked": True, "reason": REASON_UNCLASSIFIED}
            return {"blocked": False}
        if event.kind is HookEvent.SHELL_ENV:
            return {}
        return None

    # External tools

    async def run_tool(self, argv: List[str], timeout: float) -> Optional[ProcessResult]:
        """
        Run an external tool off the event loop.

        Returns None if the tool could not run or timed out; both are logged.
        """
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, functools.partial(self.runner.run, argv[0], argv[1:], timeout)
            )
        except ProcessTimeoutError as e:
            self.log("error", f"{argv[0]} abandoned: {e}")
            return None
        except ProcessError as e:
            self.log("error", f"{argv[0]} failed to start: {e}")
            return None

    # Session lifecycle

    async def on_session_created(self, event: HookEventData) -> None:
        self.store.create(event.session_id)
        self.log("info", "Session started - hookguard hooks active")

        root = event.get("worktree") or event.get("directory")
        root_path = Path(root) if root else Path.cwd()
        for name in FileConstants.CONTEXT_FILES:
            if (root_path / name).exists():
                self.log("info", f"Found {name} - loading project context")

    async def on_session_idle(self, event: HookEventData) -> None:
        state = self.store.get(event.session_id)
        if state is None or not state.edited_files:
            return None

        try:
            self.log("info", f"Session idle - running {self.audit.marker} audit")
            report = self.audit.run(state.snapshot())

            if report.passed:
                self.log("info", f"Audit passed: No {report.marker} statements found")
            else:
                listing = ", ".join(f"{path} ({count})" for path, count in report.files)
                self.log(
                    "warn",
                    f"Audit: {report.total} {report.marker} statement(s) in "
                    f"{len(report.files)} file(s): {listing}. "
                    f"Remove {report.marker} statements before committing",
                )

            if self.settings.notify_on_idle and sys.platform == "darwin":
                await self.run_tool(
                    NOTIFY_ARGV, ProcessingConstants.NOTIFY_TIMEOUT_SECONDS
                )
        finally:
            # One-shot pass: the next idle only audits files edited after this one
            state.clear()

    async def on_session_deleted(self, event: HookEventData) -> None:
        self.log("info", "Session ended - cleaning up")
        self.store.release(event.session_id)

    # File tracking

    async def on_file_edited(self, event: HookEventData) -> None:
        path = event.get("path")
        if not isinstance(path, str) or not path:
            self.log("warn", "file.edited without a path, ignoring")
            return None

        self.store.get_or_create(event.session_id).track(path)

        if not self.settings.auto_format:
            return None
        if not has_extension(path, self.settings.source_extensions):
            return None

        try:
            validate_path(path)
        except ValidationError:
            self.log("warn", f"Invalid file path rejected: {path}")
            return None

        argv = self.settings.get_formatter_argv() + [path]
        result = await self.run_tool(argv, self.settings.formatter_timeout)
        if result is None:
            return None
        if result.success:
            self.log("info", f"Formatted: {path}")
        else:
            detail = summarize_lines(
                result.output.split("\n"), ProcessingConstants.MAX_MULTILINE_LOG_LINES
            )
            self.log("debug", f"Formatter exited {result.exit_code} for {path}: {detail}")

    async def on_file_watcher_updated(self, event: HookEventData) -> None:
        path = event.get("path")
        if event.get("type") != "change" or not isinstance(path, str):
            return None
        if has_extension(path, self.settings.source_extensions):
            self.store.get_or_create(event.session_id).track(path)

    # Tool execution

    async def on_tool_execute_before(self, event: HookEventData) -> Dict[str, Any]:
        gate = self.policy.check_shell(str(event.get("tool", "")), event.get("args"))
        return gate.to_response()

    async def on_tool_execute_after(self, event: HookEventData) -> None:
        tool = str(event.get("tool", ""))
        args = event.get("args")

        file_path = get_file_path(args)
        if (
            tool in EDIT_TOOLS
            and self.settings.typecheck_on_edit
            and has_extension(file_path, self.settings.typecheck_extensions)
        ):
            await self._typecheck()

        command = extract_command(args)
        if self.policy.is_shell(tool) and isinstance(command, str):
            if needs_post_execution_warning(command):
                self.log("warn", f"Warning: Destructive command detected - {command}")
            self._log_command_outcome(command, get_exit_code(event.payload))

    async def _typecheck(self) -> None:
        result = await self.run_tool(
            self.settings.get_typecheck_argv(), self.settings.typecheck_timeout
        )
        if result is None:
            return
        if result.success:
            self.log("info", "TypeScript check passed")
            return

        self.log("warn", "TypeScript errors detected:")
        errors = [line for line in result.output.split("\n") if line.strip()]
        for line in errors[: ProcessingConstants.MAX_TYPECHECK_ERROR_LINES]:
            self.log("warn", f"  {line}")

    def _log_command_outcome(self, command: str, exit_code: Optional[int]) -> None:
        if exit_code is None:
            return
        if "build" in command or "tsc" in command:
            if exit_code != 0:
                self.log("error", f"Build failed (exit {exit_code}): {command[:100]}")
            else:
                self.log("info", "Build succeeded")
        if "test" in command or "jest" in command:
            if exit_code != 0:
                self.log("error", f"Tests failed (exit {exit_code})")
            else:
                self.log("info", "Tests passed")

    # Everything else

    async def on_todo_updated(self, event: HookEventData) -> None:
        todos = event.get("todos") or []
        total = len(todos)
        completed = sum(1 for todo in todos if isinstance(todo, dict) and todo.get("done"))
        if total > 0:
            self.log("info", f"Progress: {completed}/{total} tasks completed")

    async def on_shell_env(self, event: HookEventData) -> Dict[str, str]:
        root = event.get("worktree") or event.get("directory") or os.getcwd()
        env = {
            "HOOKGUARD_VERSION": PluginConstants.VERSION,
            "HOOKGUARD_PLUGIN": "true",
            "PROJECT_ROOT": str(root),
        }

        if self.env_provider is not None:
            try:
                extra = self.env_provider(Path(root))
            except Exception as e:
                self.log("warn", f"Environment provider failed: {e}")
            else:
                env.update({str(k): str(v) for k, v in extra.items()})

        return env

    async def on_permission_ask(self, event: HookEventData) -> Dict[str, Any]:
        tool = str(event.get("tool", ""))
        self.log("info", f"Permission requested for: {tool}")
        decision = self.policy.decide(tool, event.get("args"))
        return decision.to_response()

    async def on_session_compacting(self, event: HookEventData) -> Dict[str, str]:
        hooks = ", ".join(kind.value for kind in self._handlers)
        lines = [
            f"# {PluginConstants.NAME} context (preserve across compaction)",
            "",
            f"## Active plugin: {PluginConstants.NAME} v{PluginConstants.VERSION}",
            f"- Hooks: {hooks}",
            "",
            "## Key principles",
            f"- Remove {self.audit.marker} statements before committing",
            "- Security: validate inputs, no hardcoded secrets",
            "- Dangerous shell commands are blocked before execution",
            "",
        ]

        state = self.store.get(event.session_id)
        if state is not None and state.edited_files:
            lines.append("## Recently edited files")
            lines.extend(f"- {path}" for path in state.snapshot())
            lines.append("")

        return {"context": "\n".join(lines), "compaction_prompt": COMPACTION_PROMPT}
