"""
Quick reply API endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, status

from wadesk.api.dependencies import get_quick_reply_service
from wadesk.config import MAX_ROW_ID
from wadesk.errors import DashboardError
from wadesk.observability.logging import get_logger
from wadesk.quick_replies.models import (
    QuickReply,
    QuickReplyImportRequest,
    QuickReplyImportResult,
    QuickReplyWrite,
)
from wadesk.quick_replies.service import QuickReplyService
from wadesk.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/quick-replies", tags=["quick-replies"])
logger = get_logger(__name__)


def _internal_error(operation: str, e: Exception) -> HTTPException:
    logger.error("%s error: %s", operation, e)
    return HTTPException(status_code=500, detail=sanitize_error_message(str(e), 500))


@router.get("", response_model=list[QuickReply])
async def list_quick_replies(
    service: QuickReplyService = Depends(get_quick_reply_service),
) -> list[QuickReply]:
    try:
        return service.list_replies()
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/quick-replies", e) from None


@router.get("/export", response_model=list[QuickReply])
async def export_quick_replies(
    service: QuickReplyService = Depends(get_quick_reply_service),
) -> list[QuickReply]:
    try:
        return service.list_replies()
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/quick-replies/export", e) from None


@router.post("", response_model=QuickReply, status_code=status.HTTP_201_CREATED)
async def create_quick_reply(
    request: QuickReplyWrite,
    service: QuickReplyService = Depends(get_quick_reply_service),
) -> QuickReply:
    try:
        return await service.create_reply(request.text)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/quick-replies", e) from None


@router.post("/import", response_model=QuickReplyImportResult)
async def import_quick_replies(
    request: QuickReplyImportRequest,
    service: QuickReplyService = Depends(get_quick_reply_service),
) -> QuickReplyImportResult:
    """Bulk-insert quick replies; answers with every row after the import."""
    try:
        rows = await service.import_replies(request.items, request.replace)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/quick-replies/import", e) from None
    return QuickReplyImportResult(count=len(rows), rows=rows)


@router.put("/{reply_id}", response_model=QuickReply)
async def update_quick_reply(
    request: QuickReplyWrite,
    reply_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    service: QuickReplyService = Depends(get_quick_reply_service),
) -> QuickReply:
    try:
        return await service.update_reply(reply_id, request.text)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("PUT /api/quick-replies", e) from None


@router.delete("/{reply_id}")
async def delete_quick_reply(
    reply_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    service: QuickReplyService = Depends(get_quick_reply_service),
) -> dict[str, Any]:
    try:
        await service.delete_reply(reply_id)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("DELETE /api/quick-replies", e) from None
    return {"ok": True}
