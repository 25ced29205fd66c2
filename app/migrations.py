# Schema versioning for the hookguard decision history
# Each migration runs once, in version order, and is recorded in the migrations table

import aiosqlite
from typing import Any, Dict, List
from app.event_db import get_db_path
from utils.colored_logger import setup_logger

logger = setup_logger(__name__)

MIGRATIONS: List[Dict[str, Any]] = [
    {
        "version": 1,
        "description": "Initial events table",
        "sql": """
            CREATE TABLE IF NOT EXISTS events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                hook_event_name TEXT NOT NULL,
                payload TEXT NOT NULL,
                status TEXT DEFAULT 'completed',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                processed_at TIMESTAMP NULL,
                error_message TEXT NULL
            )
        """,
    },
    {
        "version": 2,
        "description": "Add response column for host-facing decisions",
        "sql": "ALTER TABLE events ADD COLUMN response TEXT NULL",
    },
    {
        "version": 3,
        "description": "Index events by session",
        "sql": "CREATE INDEX IF NOT EXISTS idx_events_session_id ON events (session_id)",
    },
]

LATEST_VERSION = max(m["version"] for m in MIGRATIONS)

MIGRATIONS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS migrations (
        version INTEGER PRIMARY KEY,
        description TEXT NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


async def _current_version(db: aiosqlite.Connection) -> int:
    await db.execute(MIGRATIONS_TABLE_SQL)
    cursor = await db.execute("SELECT MAX(version) FROM migrations")
    row = await cursor.fetchone()
    return row[0] or 0


async def run_migrations() -> int:
    """
    Apply pending migrations.

    Every migration commits together with its bookkeeping row, so a failure
    leaves the database at the last fully applied version.

    Returns:
        Number of migrations applied
    """
    async with aiosqlite.connect(get_db_path()) as db:
        current = await _current_version(db)
        pending = [m for m in MIGRATIONS if m["version"] > current]
        if not pending:
            logger.info(f"History schema is current (v{current})")
            return 0

        for migration in pending:
            await db.execute(migration["sql"])
            await db.execute(
                "INSERT INTO migrations (version, description) VALUES (?, ?)",
                (migration["version"], migration["description"]),
            )
            await db.commit()
            logger.info(f"Applied migration {migration['version']}: {migration['description']}")

    return len(pending)


async def get_migration_status() -> Dict[str, Any]:
    """Current schema version, pending count and the applied migration log."""
    async with aiosqlite.connect(get_db_path()) as db:
        current = await _current_version(db)
        cursor = await db.execute(
            "SELECT version, description, applied_at FROM migrations ORDER BY version"
        )
        applied = await cursor.fetchall()

    return {
        "current_version": current,
        "latest_version": LATEST_VERSION,
        "pending_migrations": len([m for m in MIGRATIONS if m["version"] > current]),
        "applied_migrations": [
            {"version": version, "description": description, "applied_at": applied_at}
            for version, description, applied_at in applied
        ],
    }
