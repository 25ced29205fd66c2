import os

import pytest

from config import Config, parse_bool_env, parse_extensions, parse_list_env
from utils.config_loader import (
    apply_config_to_env,
    flatten_dict,
    load_config,
    to_env_value,
)


@pytest.fixture
def environ(monkeypatch):
    env = {}
    monkeypatch.setattr(os, "environ", env)
    return env


class TestConfigLoader:
    def test_flatten(self):
        assert flatten_dict({"format": {"enabled": False, "timeout": 3}}) == {
            "format.enabled": False,
            "format.timeout": 3,
        }

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("audit:\n  debug_marker: 'print('\npolicy:\n  shell_tools: [bash, sh]\n")
        assert load_config(path) == {
            "audit.debug_marker": "print(",
            "policy.shell_tools": ["bash", "sh"],
        }

    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == {}

    @pytest.mark.parametrize("content", ["audit: [unclosed", "- just\n- a list\n"])
    def test_unusable_file_means_defaults(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)
        assert load_config(path) == {}

    def test_env_value_rendering(self):
        assert to_env_value(True) == "true"
        assert to_env_value(["bash", "sh"]) == "bash,sh"
        assert to_env_value(7) == "7"

    def test_environment_wins_over_file(self, environ):
        environ["HOOKGUARD_DEBUG_MARKER"] = "debugger"
        apply_config_to_env({"audit.debug_marker": "print(", "format.enabled": False})
        assert environ == {
            "HOOKGUARD_DEBUG_MARKER": "debugger",
            "HOOKGUARD_AUTO_FORMAT": "false",
        }


class TestConfig:
    @pytest.mark.parametrize("value", ["true", "YES", "on", "1"])
    def test_truthy(self, value):
        assert parse_bool_env(value) is True

    def test_empty_uses_default(self):
        assert parse_bool_env("", True) is True
        assert parse_bool_env("off", True) is False

    def test_list_parsing(self):
        assert parse_list_env(" bash, sh ,,", ("x",)) == ("bash", "sh")
        assert parse_list_env(None, ("x",)) == ("x",)

    def test_extensions_gain_dot(self):
        assert parse_extensions("ts,.py") == (".ts", ".py")

    def test_from_env(self, environ):
        environ.update(
            {
                "HOOKGUARD_PORT": "9000",
                "HOOKGUARD_AUTO_FORMAT": "false",
                "HOOKGUARD_FORMATTER_COMMAND": "npx biome format --write",
                "HOOKGUARD_SHELL_TOOLS": "bash,sh",
            }
        )
        settings = Config.from_env()
        assert settings.port == 9000
        assert settings.auto_format is False
        assert settings.shell_tools == ("bash", "sh")
        assert settings.get_formatter_argv() == ["npx", "biome", "format", "--write"]

    def test_defaults(self, environ):
        settings = Config.from_env()
        assert settings.debug_marker == "console.log"
        assert settings.read_only_tools == ("read", "glob", "grep", "search", "list")
        assert settings.get_typecheck_argv() == ["npx", "tsc", "--noEmit"]
