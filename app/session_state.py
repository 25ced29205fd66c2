# Per-session state for the hookguard extension
# Each session id owns its own edited-file set; nothing is shared across sessions

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Set

from utils.colored_logger import setup_logger
from utils.constants import SessionConstants

logger = setup_logger(__name__)


@dataclass
class SessionState:
    """Mutable state for one session: the files edited since the last audit."""

    session_id: str
    edited_files: Set[str] = field(default_factory=set)
    active: bool = True
    last_seen: float = field(default_factory=time.monotonic)

    def track(self, path: str) -> bool:
        """Add a path to the edited set. Returns False if it was already tracked."""
        if path in self.edited_files:
            return False
        self.edited_files.add(path)
        return True

    def snapshot(self) -> List[str]:
        """Sorted copy of the edited set, safe to iterate while the set changes."""
        return sorted(self.edited_files)

    def clear(self) -> None:
        self.edited_files.clear()


class SessionStore:
    """
    Session-keyed registry of SessionState objects.

    A host that never sends session.deleted would leave its state behind, so
    sessions not looked up for ``ttl_seconds`` are released on the next create
    or get_or_create.
    """

    def __init__(
        self,
        ttl_seconds: float = SessionConstants.IDLE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._sessions: Dict[str, SessionState] = {}
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def create(self, session_id: str) -> SessionState:
        """Start a fresh, empty state for a session, replacing any previous one."""
        self.prune_stale()
        state = SessionState(session_id=session_id, last_seen=self._clock())
        self._sessions[session_id] = state
        logger.debug(f"Created state for session {session_id}")
        return state

    def get(self, session_id: str) -> Optional[SessionState]:
        state = self._sessions.get(session_id)
        if state is not None:
            state.last_seen = self._clock()
        return state

    def get_or_create(self, session_id: str) -> SessionState:
        """Return the session's state, creating it if the host skipped session.created."""
        self.prune_stale()
        state = self.get(session_id)
        if state is None:
            state = self.create(session_id)
        return state

    def release(self, session_id: str) -> Optional[SessionState]:
        """Clear and forget a session's state."""
        state = self._sessions.pop(session_id, None)
        if state is not None:
            state.clear()
            state.active = False
            logger.debug(f"Released state for session {session_id}")
        return state

    def prune_stale(self) -> List[str]:
        """Release every session idle for longer than the TTL. Returns their ids."""
        cutoff = self._clock() - self.ttl_seconds
        stale = [state.session_id for state in self if state.last_seen < cutoff]
        for session_id in stale:
            self.release(session_id)
        if stale:
            logger.info(f"Pruned {len(stale)} idle session(s)")
        return stale

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[SessionState]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def summary(self) -> List[Dict[str, object]]:
        """Describe all live sessions for the status endpoint."""
        return [
            {
                "session_id": state.session_id,
                "active": state.active,
                "edited_files": state.snapshot(),
            }
            for state in self
        ]
