"""Quick reply models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class QuickReply(BaseModel):
    """A canned message the operator can send with one click."""

    id: int
    text: str
    created_at: str | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> QuickReply:
        return cls(id=row["id"], text=row["text"], created_at=row.get("created_at"))


class QuickReplyWrite(BaseModel):
    """Body of quick reply create/update requests."""

    text: str = Field(..., min_length=1)

    @field_validator("text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class QuickReplyImportRequest(BaseModel):
    """Body of POST /api/quick-replies/import; items without text are skipped."""

    items: list[Any] = Field(default_factory=list)
    replace: bool = False


class QuickReplyImportResult(BaseModel):
    ok: bool = True
    count: int
    rows: list[QuickReply]
