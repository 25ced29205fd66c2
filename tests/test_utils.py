import re
import sys

import pytest

from utils.colored_logger import redact_sensitive_data
from utils.errors import ProcessError, ProcessTimeoutError, ValidationError
from utils.hooks_constants import (
    HookEvent,
    get_all_hook_events,
    is_valid_hook_event,
    resolve_hook_event,
)
from utils.log_sink import LogSink, find_project_root, summarize_lines
from utils.process_utils import ProcessRunner
from utils.validation import validate_branch_name, validate_path


class TestValidation:
    @pytest.mark.parametrize("path", ["src/a.ts", "src\\a.ts", "my file.tsx", "../x.js"])
    def test_safe_paths(self, path):
        assert validate_path(path) == path

    @pytest.mark.parametrize(
        "path", ["a.ts; rm -rf /", "$(whoami).ts", "a`b`.ts", "", "a|b.ts", "src/a.ts\n", "a.ts\nrm"]
    )
    def test_unsafe_paths(self, path):
        with pytest.raises(ValidationError):
            validate_path(path)

    @pytest.mark.parametrize("branch", ["main", "feature/hooks-1.2", "release_v2"])
    def test_safe_branches(self, branch):
        assert validate_branch_name(branch) == branch

    @pytest.mark.parametrize(
        "branch", ["feature hooks", "main;rm -rf /", "a\\b", "main\n", "", None]
    )
    def test_unsafe_branches(self, branch):
        with pytest.raises(ValidationError):
            validate_branch_name(branch)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_path("a;b")


class TestProcessRunner:
    def test_captures_output_and_exit_code(self):
        result = ProcessRunner().run(
            sys.executable, ["-c", "import sys; print('out'); sys.exit(3)"], timeout=10
        )
        assert result.exit_code == 3
        assert not result.success
        assert result.stdout.strip() == "out"

    def test_arguments_are_not_shell_interpreted(self):
        result = ProcessRunner().run(
            sys.executable, ["-c", "import sys; print(sys.argv[1])", "a; echo pwned"], timeout=10
        )
        assert result.stdout.strip() == "a; echo pwned"

    def test_output_falls_back_to_stderr(self):
        result = ProcessRunner().run(
            sys.executable, ["-c", "import sys; sys.stderr.write('oops')"], timeout=10
        )
        assert result.output == "oops"

    def test_missing_executable(self):
        with pytest.raises(ProcessError) as exc:
            ProcessRunner().run("definitely-not-a-real-binary-xyz", [])
        assert exc.value.command == "definitely-not-a-real-binary-xyz"

    def test_timeout_kills_and_raises(self):
        with pytest.raises(ProcessTimeoutError) as exc:
            ProcessRunner().run(sys.executable, ["-c", "import time; time.sleep(30)"], timeout=0.5)
        assert exc.value.timeout == 0.5

    def test_runs_in_cwd(self, tmp_path):
        result = ProcessRunner(cwd=str(tmp_path)).run(
            sys.executable, ["-c", "import os; print(os.getcwd())"], timeout=10
        )
        assert result.stdout.strip() == str(tmp_path.resolve())


class TestLogSink:
    LINE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[(\w+)\s*\] (.*)$")

    def read_lines(self, sink: LogSink):
        sink.close()
        return sink.log_path.read_text(encoding="utf-8").splitlines()

    def test_line_format(self, tmp_path):
        sink = LogSink(tmp_path / "hooks.log")
        sink.append("warn", "careful")
        sink.append("error", "broken")
        lines = self.read_lines(sink)
        assert [self.LINE.match(line).groups() for line in lines] == [
            ("WARN", "careful"),
            ("ERROR", "broken"),
        ]

    def test_creates_missing_directory(self, tmp_path):
        sink = LogSink(tmp_path / "nested" / "dir" / "hooks.log")
        sink.append("info", "hello")
        assert self.read_lines(sink)[0].endswith("hello")

    def test_never_raises(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        sink = LogSink(blocker / "hooks.log")
        sink.append("error", "lost")

    def test_secrets_are_redacted(self, tmp_path):
        sink = LogSink(tmp_path / "hooks.log")
        sink.append("error", "Security: blocked export API_KEY=abcdef1234567890")
        assert "abcdef1234567890" not in self.read_lines(sink)[0]

    def test_prefix(self, tmp_path):
        sink = LogSink(tmp_path / "hooks.log", prefix="[hookguard]")
        sink.append("info", "ready")
        assert self.read_lines(sink)[0].endswith("[hookguard] ready")

    def test_summarize_lines(self):
        assert summarize_lines(["e1", "", "e2", "e3", "e4", "e5"]) == "e1 | e2 | e3 (+2 more)"
        assert summarize_lines(["  only  "]) == "only"

    def test_project_root_discovery(self, tmp_path):
        (tmp_path / "package.json").write_text("{}")
        nested = tmp_path / "src" / "components"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()


class TestRedaction:
    def test_token_shapes(self):
        text = redact_sensitive_data("git push https://ghp_" + "a" * 36 + "@github.com")
        assert "a" * 36 not in text

    def test_password_assignment(self):
        assert redact_sensitive_data("password='hunter22'") == "password='***REDACTED***'"

    def test_plain_text_untouched(self):
        assert redact_sensitive_data("Formatted: src/a.ts") == "Formatted: src/a.ts"


class TestHookEvents:
    def test_all_events_listed(self):
        assert len(get_all_hook_events()) == 11
        assert "permission.ask" in get_all_hook_events()

    def test_alias_resolves(self):
        assert resolve_hook_event("experimental.session.compacting") is HookEvent.SESSION_COMPACTING

    def test_unknown(self):
        assert resolve_hook_event("session.exploded") is None
        assert not is_valid_hook_event("session.exploded")
