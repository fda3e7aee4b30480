"""
Tag API endpoints.

Provides endpoints for:
- Listing, creating, editing and deleting tags (the Archived system tag is protected)
- Assigning tags to chats and removing them
- Exporting and importing tags with their assignments
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, status

from wadesk.api.dependencies import get_tag_service
from wadesk.config import MAX_ROW_ID
from wadesk.errors import DashboardError
from wadesk.observability.logging import get_logger
from wadesk.reconciliation.models import TagImportReport, TagImportRequest
from wadesk.tags.models import Tag, TagAssignRequest, TagExport, TagWrite
from wadesk.tags.service import TagService
from wadesk.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/tags", tags=["tags"])
logger = get_logger(__name__)


def _internal_error(operation: str, e: Exception) -> HTTPException:
    logger.error("%s error: %s", operation, e)
    return HTTPException(status_code=500, detail=sanitize_error_message(str(e), 500))


# ============================================================================
# Tag CRUD
# ============================================================================


@router.get("", response_model=list[Tag])
async def list_tags(service: TagService = Depends(get_tag_service)) -> list[Tag]:
    """List every tag, system tag included, ordered by id."""
    try:
        return service.list_tags()
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/tags", e) from None


@router.post("", response_model=Tag, status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagWrite,
    service: TagService = Depends(get_tag_service),
) -> Tag:
    try:
        return await service.create_tag(request.name, request.color)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/tags", e) from None


@router.get("/export", response_model=TagExport)
async def export_tags(service: TagService = Depends(get_tag_service)) -> TagExport:
    """Dump tags and assignments in the format accepted by /import."""
    try:
        return service.export()
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/tags/export", e) from None


@router.post("/import", response_model=TagImportReport)
async def import_tags(
    request: TagImportRequest,
    service: TagService = Depends(get_tag_service),
) -> TagImportReport:
    """
    Import tags and assignments, remapping exported ids onto fresh ones.

    Per-assignment failures are reported in the response, never raised.
    """
    try:
        return await service.import_tags(request)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/tags/import", e) from None


@router.post("/assign")
async def assign_tag(
    request: TagAssignRequest,
    service: TagService = Depends(get_tag_service),
) -> dict[str, Any]:
    """Assign a tag to a chat; repeating an assignment is a no-op reported as ``existing``."""
    try:
        created = await service.assign(request.tag_id, request.chat_id)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/tags/assign", e) from None

    if not created:
        return {"ok": True, "existing": True}
    return {"ok": True}


@router.post("/unassign")
async def unassign_tag(
    request: TagAssignRequest,
    service: TagService = Depends(get_tag_service),
) -> dict[str, Any]:
    """Remove a tag from a chat. Removing Archived also unarchives the chat."""
    try:
        await service.unassign(request.tag_id, request.chat_id)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("POST /api/tags/unassign", e) from None
    return {"ok": True}


@router.put("/{tag_id}", response_model=Tag)
async def update_tag(
    request: TagWrite,
    tag_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    service: TagService = Depends(get_tag_service),
) -> Tag:
    try:
        return await service.update_tag(tag_id, request.name, request.color)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("PUT /api/tags", e) from None


@router.delete("/{tag_id}")
async def delete_tag(
    tag_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    service: TagService = Depends(get_tag_service),
) -> dict[str, Any]:
    """Delete a user tag and every assignment of it."""
    try:
        await service.delete_tag(tag_id)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("DELETE /api/tags", e) from None
    return {"ok": True}


@router.get("/{tag_id}/count")
async def count_assignments(
    tag_id: int = Path(..., gt=0, le=MAX_ROW_ID),
    service: TagService = Depends(get_tag_service),
) -> dict[str, Any]:
    try:
        count = service.count(tag_id)
    except DashboardError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    except Exception as e:
        raise _internal_error("GET /api/tags/{id}/count", e) from None
    return {"tagId": tag_id, "count": count}
