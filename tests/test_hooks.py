import pytest
import requests

import hooks


class TestArguments:
    def test_parse_custom_arguments(self):
        arguments = hooks.parse_custom_arguments(["--event=shell.env", "--local", "stray", "--session-id=abc"])
        assert arguments == {"event": "shell.env", "local": True, "session_id": "abc"}


class TestBuildEvent:
    def test_flags_override_body(self):
        data = {"hook_event_name": "session.idle", "session_id": "body", "payload": {"x": 1}}
        assert hooks.build_event(data, {"event": "shell.env"}) == ("shell.env", "body", {"x": 1})

    def test_payload_from_remaining_keys(self):
        data = {"hook_event_name": "file.edited", "session_id": "s", "path": "a.ts"}
        assert hooks.build_event(data, {}) == ("file.edited", "s", {"path": "a.ts"})

    def test_default_session(self):
        assert hooks.build_event({"hook_event_name": "shell.env"}, {})[1] == "default"


class TestHandle:
    @pytest.fixture(autouse=True)
    def in_tmp_project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

    def test_local_dispatch(self):
        data = {"tool": "bash", "args": {"command": "rm -rf /"}}
        response = hooks.handle(data, {"event": "tool.execute.before", "local": True})
        assert response == {"blocked": True, "reason": "Dangerous command pattern"}

    def test_falls_back_when_server_unreachable(self, monkeypatch):
        def unreachable(*args, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(hooks, "send_to_api", unreachable)
        data = {"tool": "bash", "args": {"command": "npm test"}}
        response = hooks.handle(data, {"event": "permission.ask"})
        assert response == {"approved": True, "reason": "Test execution"}

    def test_uses_server_response(self, monkeypatch):
        calls = []

        def fake_send(event_name, session_id, payload, port):
            calls.append((event_name, session_id, payload, port))
            return {"approved": None}

        monkeypatch.setattr(hooks, "send_to_api", fake_send)
        response = hooks.handle({"session_id": "s"}, {"event": "permission.ask", "port": "9999"})
        assert response == {"approved": None}
        assert calls == [("permission.ask", "s", {}, 9999)]

    def test_missing_event_name(self):
        assert hooks.handle({}, {}) is None

    def test_unknown_event_never_hits_network(self, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("should not be called")

        monkeypatch.setattr(hooks, "send_to_api", fail)
        assert hooks.handle({}, {"event": "made.up"}) is None
