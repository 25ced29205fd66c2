# Database operations for the hookguard decision history
# Records every dispatched event and the response handed back to the host

import aiosqlite
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional
from config import config
from utils.constants import DatabaseConstants, DateTimeConstants, EventStatus
from utils.colored_logger import setup_logger

logger = setup_logger(__name__)

DB_PATH = config.db_path


def get_db_path() -> str:
    """Current database path (read at call time so tests can repoint it)."""
    return DB_PATH


# Database initialization
async def init_db():
    """Initialize the events database using migration system"""
    from app.migrations import run_migrations

    Path(get_db_path()).parent.mkdir(parents=True, exist_ok=True)
    await run_migrations()
    logger.info("Database initialized")


def _now() -> str:
    return datetime.now(timezone.utc).strftime(DateTimeConstants.ISO_DATETIME_FORMAT)


async def record_event(
    session_id: str,
    hook_event_name: str,
    payload: Dict[str, Any],
    response: Any = None,
    status: EventStatus = EventStatus.COMPLETED,
    error_message: Optional[str] = None,
) -> int:
    """
    Store a dispatched event and its outcome.
    Returns the event ID.
    """
    async with aiosqlite.connect(get_db_path()) as db:
        cursor = await db.execute(
            "INSERT INTO events (session_id, hook_event_name, payload, response, status, error_message, processed_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                session_id,
                hook_event_name,
                json.dumps(payload, default=str),
                json.dumps(response, default=str) if response is not None else None,
                status.value,
                error_message,
                _now(),
            ),
        )
        await db.commit()
        event_id = cursor.lastrowid
        logger.debug(
            f"Recorded event {event_id}: {hook_event_name} for session {session_id}"
        )
        return event_id


async def record_event_safe(*args, **kwargs) -> Optional[int]:
    """Fire-and-forget wrapper: history is best-effort and never fails a hook."""
    try:
        return await record_event(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Failed to record event history: {e}")
        return None


# Event status and monitoring functions
async def get_events_status(session_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Get a summary of recorded events.
    Returns status counts and the most recent events, optionally for one session.
    """
    where = "WHERE session_id = ?" if session_id else ""
    params: tuple = (session_id,) if session_id else ()

    async with aiosqlite.connect(get_db_path()) as db:
        cursor = await db.execute(
            f"""
            SELECT status, COUNT(*) as count
            FROM events
            {where}
            GROUP BY status
        """,
            params,
        )
        status_counts = await cursor.fetchall()

        cursor = await db.execute(  # get latest events
            f"""
            SELECT id, session_id, hook_event_name, response, status, created_at, processed_at, error_message
            FROM events
            {where}
            ORDER BY id DESC
            LIMIT ?
        """,
            params + (DatabaseConstants.RECENT_EVENTS_LIMIT,),
        )
        recent_events = await cursor.fetchall()

        return {
            "status_summary": {status: count for status, count in status_counts},
            "recent_events": [
                {
                    "id": row[0],
                    "session_id": row[1],
                    "hook_event_name": row[2],
                    "response": json.loads(row[3]) if row[3] else None,
                    "status": row[4],
                    "created_at": row[5],
                    "processed_at": row[6],
                    "error_message": row[7],
                }
                for row in recent_events
            ],
        }
