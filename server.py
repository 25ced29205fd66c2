#!/usr/bin/env -S uv run --script
# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "uvicorn",
#     "fastapi",
#     "aiosqlite",
#     "pydantic",
#     "python-dotenv",
#     "pyyaml",
#     "psutil",
# ]
# ///

# Main server entry point for the hookguard extension
# Keeps per-session state alive between hook invocations

import uvicorn
import logging
import sys
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from app.api import create_app
from app.event_db import init_db
from app.event_processor import EventDispatcher
from config import config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    """Manage application lifecycle for startup and shutdown."""
    server_start_time = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    await init_db()

    dispatcher = EventDispatcher(settings=config)
    app.state.dispatcher = dispatcher
    logger.info(f"Hook log: {dispatcher.sink.log_path}")
    logger.info(f"Server started successfully at {server_start_time}")
    yield

    for state in dispatcher.store:
        dispatcher.store.release(state.session_id)
    dispatcher.sink.close()
    logger.info("Server shutdown complete")


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    # Check if we're in development mode (with --reload flag or specific argument)
    reload = "--reload" in sys.argv or "--dev" in sys.argv

    if reload:
        uvicorn.run(
            "server:app",  # Use string import for reload to work
            host=config.host,
            port=config.port,
            reload=True,
            reload_dirs=[".", "app", "utils"],
            reload_excludes=["*.db", ".hookguard"],
        )
    else:
        uvicorn.run(app, host=config.host, port=config.port)
