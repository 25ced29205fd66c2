# FastAPI endpoints for the hookguard extension
# Receives host events from hooks.py, dispatches them and returns the host response

import asyncio
import os
import signal
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from app.event_db import get_events_status as get_db_events_status, record_event_safe
from app.event_processor import EventDispatcher
from app.migrations import get_migration_status
from utils.colored_logger import setup_logger, configure_root_logging
from utils.constants import EventStatus, HTTPStatusConstants
from utils.hooks_constants import is_valid_hook_event

configure_root_logging()
logger = setup_logger(__name__)


class HookRequest(BaseModel):
    """Pydantic model for incoming host events."""

    session_id: str
    hook_event_name: str
    payload: Dict[str, Any] = Field(default_factory=dict)


def get_dispatcher(request: Request) -> EventDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        dispatcher = EventDispatcher()
        request.app.state.dispatcher = dispatcher
    return dispatcher


def create_app(
    lifespan=None, dispatcher: Optional[EventDispatcher] = None, record_history: bool = True
) -> FastAPI:
    """Create FastAPI application with configured endpoints."""
    app = FastAPI(lifespan=lifespan)
    app.state.dispatcher = dispatcher
    # Strong references so fire-and-forget history writes aren't garbage collected
    background_tasks: Set[asyncio.Task] = set()

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.post("/events")
    async def create_event(event: HookRequest, request: Request):
        """Endpoint to receive a host event and return the hook's response.

        Dispatch happens inline because gating events need their answer before
        the host continues. History is written in the background.
        """
        if not event.session_id or not event.hook_event_name:
            raise HTTPException(
                status_code=HTTPStatusConstants.BAD_REQUEST,
                detail="Both session_id and hook_event_name are required",
            )

        # dispatch_raw never raises: handler failures come back as safe defaults
        response = await get_dispatcher(request).dispatch_raw(
            event.hook_event_name, event.session_id, event.payload
        )

        if record_history:
            known = is_valid_hook_event(event.hook_event_name)
            task = asyncio.create_task(
                record_event_safe(
                    event.session_id,
                    event.hook_event_name,
                    event.payload,
                    response,
                    EventStatus.COMPLETED if known else EventStatus.FAILED,
                    None if known else "Unknown hook event",
                )
            )
            background_tasks.add(task)
            task.add_done_callback(background_tasks.discard)

        return {"status": "ok", "response": response}

    @app.get("/events/status")
    async def get_events_status(session_id: Optional[str] = None):
        """Get recorded event counts and the latest events, optionally per session."""
        try:
            return await get_db_events_status(session_id)
        except Exception as e:
            logger.error(f"Error getting events status: {e}")
            raise HTTPException(
                status_code=HTTPStatusConstants.INTERNAL_SERVER_ERROR,
                detail="Failed to get events status",
            )

    @app.get("/sessions")
    async def get_sessions(request: Request):
        """List live sessions and the files each has edited since its last audit."""
        return {"sessions": get_dispatcher(request).store.summary()}

    @app.get("/migrations/status")
    async def get_migrations_status():
        """Get current database migration status.

        Shows applied migrations and pending count.
        """
        try:
            return await get_migration_status()
        except Exception as e:
            logger.error(f"Error getting migration status: {e}")
            raise HTTPException(
                status_code=HTTPStatusConstants.INTERNAL_SERVER_ERROR,
                detail="Failed to get migration status",
            )

    @app.post("/shutdown")
    async def shutdown_server():
        """Shutdown the server gracefully.

        Triggers graceful shutdown sequence via SIGTERM signal.
        This allows the lifespan context manager to handle cleanup properly.
        """
        logger.info("Shutdown requested via API endpoint")
        try:
            os.kill(os.getpid(), signal.SIGTERM)
            return {"status": "ok", "message": "Server shutdown initiated"}
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")
            raise HTTPException(
                status_code=HTTPStatusConstants.INTERNAL_SERVER_ERROR,
                detail="Failed to shutdown server",
            )

    return app
