"""Type definitions for the application."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from utils.hooks_constants import HookEvent


@dataclass(frozen=True)
class HookEventData:
    """One lifecycle event as received from the host. Immutable once built."""

    kind: HookEvent
    session_id: str
    payload: Mapping[str, Any]

    @classmethod
    def create(
        cls, kind: HookEvent, session_id: str, payload: Optional[Dict[str, Any]] = None
    ) -> "HookEventData":
        return cls(
            kind=kind,
            session_id=session_id,
            payload=MappingProxyType(dict(payload or {})),
        )

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)
