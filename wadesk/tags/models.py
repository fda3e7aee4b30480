"""
Tag domain models.

Tags are user-defined labels (name + color) attached to chats through
``tag_assignments``. One tag, "Archived", is a system tag: it always exists
and can be neither renamed nor deleted.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wadesk.config import MAX_ROW_ID


class Tag(BaseModel):
    """A persisted tag row."""

    id: int
    name: str
    color: str
    is_system: bool = False
    created_at: str | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Tag:
        """Create Tag from database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            is_system=bool(row.get("is_system") or 0),
            created_at=row.get("created_at"),
        )


class TagAssignment(BaseModel):
    """Binding of a tag to a chat, as exported."""

    tag_id: int
    chat_id: str
    phone_number: str | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> TagAssignment:
        return cls(
            tag_id=row["tag_id"],
            chat_id=row["chat_id"],
            phone_number=row.get("phone_number"),
        )


class TagExport(BaseModel):
    """Full dump of tags and assignments, the input format of tag import."""

    tags: list[Tag]
    assignments: list[TagAssignment]


class TagWrite(BaseModel):
    """Body of tag create/update requests."""

    name: str = Field(..., min_length=1, max_length=200)
    color: str = Field(..., min_length=1, max_length=50)

    @field_validator("name", "color")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class TagAssignRequest(BaseModel):
    """Body of assign/unassign requests (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    tag_id: int = Field(..., alias="tagId", gt=0, le=MAX_ROW_ID)
    chat_id: str = Field(..., alias="chatId", min_length=1)

