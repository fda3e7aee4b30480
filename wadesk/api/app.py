"""FastAPI server for the wadesk WhatsApp dashboard"""

from __future__ import annotations

import asyncio
import contextlib
import sqlite3
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from wadesk.api.routes.health import router as health_router
from wadesk.api.routes.notes import router as notes_router
from wadesk.api.routes.quick_replies import router as quick_replies_router
from wadesk.api.routes.realtime import router as realtime_router
from wadesk.api.routes.tags import router as tags_router
from wadesk.automation.client import AutomationClient
from wadesk.automation.loader import initialize_with_retry, load_automation_client
from wadesk.chats.service import ChatService
from wadesk.config import (
    API_PORT,
    APP_VERSION,
    AUTOMATION_CLIENT,
    DB_PATH,
    STATIC_DIR,
    is_development,
)
from wadesk.infrastructure.database import ChatStore
from wadesk.notes.repository import NoteRepository
from wadesk.notes.service import NoteService
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter, log_event
from wadesk.quick_replies.repository import QuickReplyRepository
from wadesk.quick_replies.service import QuickReplyService
from wadesk.realtime.connection_manager import ConnectionManager
from wadesk.realtime.events import EventBus
from wadesk.tags.repository import TagRepository
from wadesk.tags.service import TagService

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


# Custom validation error handler to prevent information leakage
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Answer malformed requests with 400 and the names of the offending fields only.
    """
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())

    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")],
        },
    )


def allowed_origins() -> list[str]:
    origins = [f"http://localhost:{API_PORT}", f"http://127.0.0.1:{API_PORT}"]

    # Allow the usual frontend dev servers in development only
    if is_development():
        origins.extend(
            [
                "http://localhost:3000",
                "http://localhost:5173",
                "http://localhost:8000",
                "http://127.0.0.1:3000",
                "http://127.0.0.1:5173",
                "http://127.0.0.1:8000",
            ]
        )
    return sorted(set(origins))


def open_store(store: ChatStore) -> None:
    """Open the store, failing start-up loudly if it cannot be read."""
    try:
        logger.info("Initializing store...")
        store.open()
        store.validate_schema()
        logger.info("Store initialization complete")
    except FileNotFoundError as e:
        logger.critical("Store file not found: %s", e)
        raise RuntimeError(f"Store initialization failed: {e}") from e
    except sqlite3.DatabaseError as e:
        logger.critical("Store schema error: %s", e)
        raise RuntimeError(f"Store initialization failed: {e}") from e
    except Exception as e:
        logger.critical("Unexpected store initialization error: %s", e)
        raise RuntimeError(f"Store initialization failed: {e}") from e


def create_app(
    store: ChatStore | None = None,
    client: AutomationClient | None = None,
    *,
    static_dir: Path | None = STATIC_DIR,
    await_client: bool = False,
) -> FastAPI:
    """
    Build the application and wire its services.

    Args:
        store: Store to serve; defaults to one backed by ``WADESK_DB_PATH``
        client: Automation client; defaults to ``WADESK_AUTOMATION_CLIENT``
        static_dir: Frontend directory mounted at ``/`` when it exists
        await_client: Finish client initialization before serving instead of
            running it in the background (tests use this for determinism)
    """
    store = store if store is not None else ChatStore(DB_PATH)
    client = client if client is not None else load_automation_client(AUTOMATION_CLIENT)

    bus = EventBus()
    connections = ConnectionManager()
    bus.subscribe(connections.broadcast)

    tag_service = TagService(TagRepository(store), bus)
    chat_service = ChatService(client, tag_service, bus)
    tag_service.unarchiver = chat_service.unarchive_in_client
    chat_service.attach()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not store.ready:
            open_store(store)

        init_task = None
        if await_client:
            await initialize_with_retry(client)
        else:
            init_task = asyncio.create_task(initialize_with_retry(client))

        log_event("api.startup", service="wadesk", version=APP_VERSION)
        try:
            yield
        finally:
            if init_task is not None and not init_task.done():
                init_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await init_task
            store.close()
            log_event("api.shutdown", service="wadesk")

    app = FastAPI(title="wadesk WhatsApp Dashboard API", version=APP_VERSION, lifespan=lifespan)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.state.store = store
    app.state.bus = bus
    app.state.connections = connections
    app.state.client = client
    app.state.tag_service = tag_service
    app.state.chat_service = chat_service
    app.state.note_service = NoteService(NoteRepository(store), bus)
    app.state.quick_reply_service = QuickReplyService(QuickReplyRepository(store), bus)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(tags_router)
    app.include_router(notes_router)
    app.include_router(quick_replies_router)
    app.include_router(realtime_router)

    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="frontend")
        logger.info("Serving frontend from %s", static_dir)
    else:

        @app.get("/")
        def root() -> dict[str, Any]:
            return {
                "service": "wadesk WhatsApp Dashboard API",
                "version": APP_VERSION,
                "status": "running",
                "endpoints": {
                    "health": "/health",
                    "tags": "/api/tags",
                    "tags_export": "/api/tags/export",
                    "tags_import": "/api/tags/import",
                    "notes": "/api/notes",
                    "notes_counts": "/api/notes/counts",
                    "quick_replies": "/api/quick-replies",
                    "realtime": "/ws",
                },
            }

    return app


app = create_app()
