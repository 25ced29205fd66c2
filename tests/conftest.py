from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from app.event_processor import EventDispatcher
from app.session_state import SessionStore
from config import Config
from utils.process_utils import ProcessResult


class RecordingSink:
    """In-memory sink that keeps every line for assertions."""

    def __init__(self):
        self.records: List[Tuple[str, str]] = []

    def append(self, level: str, message: str) -> None:
        self.records.append((level, message))

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [m for lvl, m in self.records if level is None or lvl == level]


class FakeRunner:
    """Process runner double that records calls instead of spawning anything."""

    def __init__(self, result: Optional[ProcessResult] = None, error: Exception = None):
        self.calls: List[Tuple[str, List[str], Optional[float]]] = []
        self.result = result or ProcessResult(exit_code=0, stdout="", stderr="")
        self.error = error

    def run(self, command, args, timeout=None):
        self.calls.append((command, list(args), timeout))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def settings() -> Config:
    return Config(notify_on_idle=False)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def dispatcher(settings, store, sink, runner) -> EventDispatcher:
    return EventDispatcher(settings=settings, store=store, sink=sink, runner=runner)


@pytest.fixture
def write_source(tmp_path: Path):
    """Write a file under tmp_path and return its path as a string."""

    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def make_dispatcher(settings, store, sink):
    """Build a dispatcher whose runner returns `result` or raises `error`."""

    def _make(result: Optional[ProcessResult] = None, error: Exception = None, **kwargs):
        runner = kwargs.pop("runner", None) or FakeRunner(result=result, error=error)
        return EventDispatcher(settings=settings, store=store, sink=sink, runner=runner, **kwargs)

    return _make
