"""
Notes API endpoints.

Notes are served in camelCase (``chatId``, ``phoneNumber``, ``createdAt``,
``updatedAt``).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from wadesk.api.dependencies import get_note_service
from wadesk.config import MAX_ROW_ID
from wadesk.errors import DashboardError
from wadesk.notes.models import Note, NoteCount, NoteCreate, NoteUpdate
from wadesk.notes.service import NoteService
from wadesk.observability.logging import get_logger
from wadesk.reconciliation.models import NoteImportReport, NoteImportRequest
from wadesk.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/notes", tags=["notes"])
logger = get_logger(__name__)


def _internal_error(operation: str, e: Exception) -> HTTPException:
    logger.error("%s error: %s", operation, e)
    return HTTPException(status_code=500, detail=sanitize_error_message(str(e), 500))


@router.get("", response_model=list[Note])
async def list_notes(
    chat_id: str | None = Query(None, alias="chatId", description="Chat whose notes to list"),
    service: NoteService = Depends(get_note_service),
) -> list[Note]:
    """Notes of one chat, newest first."""
    if not chat_id:
        raise HTTPException(status_code=400, detail="chatId required")
    try:
        return service.list_for_chat(chat_id)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/notes", e) from None


@router.post("", response_model=Note, status_code=status.HTTP_201_CREATED)
async def create_note(
    request: NoteCreate,
    service: NoteService = Depends(get_note_service),
) -> Note:
    try:
        return await service.create_note(request.chat_id, request.text)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/notes", e) from None


@router.get("/counts", response_model=list[NoteCount])
async def note_counts(service: NoteService = Depends(get_note_service)) -> list[NoteCount]:
    """Number of notes per chat, for badges in the chat list."""
    try:
        return service.counts()
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/notes/counts", e) from None


@router.get("/export", response_model=list[Note])
async def export_notes(
    chat_id: str | None = Query(None, alias="chatId"),
    service: NoteService = Depends(get_note_service),
) -> list[Note]:
    """All notes (or those of ``chatId``), oldest first."""
    try:
        return service.export(chat_id or None)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/notes/export", e) from None


@router.post("/import", response_model=NoteImportReport)
async def import_notes(
    request: NoteImportRequest,
    service: NoteService = Depends(get_note_service),
) -> NoteImportReport:
    """
    Import notes, resolving chats from phone numbers where needed.

    Per-note failures are reported in the response, never raised.
    """
    try:
        return await service.import_notes(request)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/notes/import", e) from None


@router.put("/{note_id}", response_model=Note)
async def update_note(
    request: NoteUpdate,
    note_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    service: NoteService = Depends(get_note_service),
) -> Note:
    try:
        return await service.update_note(note_id, request.text)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("PUT /api/notes", e) from None


@router.delete("/{note_id}")
async def delete_note(
    note_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    service: NoteService = Depends(get_note_service),
) -> dict[str, Any]:
    try:
        await service.delete_note(note_id)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("DELETE /api/notes", e) from None
    return {"ok": True}
