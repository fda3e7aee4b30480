"""
Note models.

Notes are free text attached to a chat. Unlike tags they serialize in
camelCase, which is what the dashboard and note exports use.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Note(_CamelModel):
    """A persisted note row."""

    id: int
    chat_id: str
    phone_number: str | None = None
    text: str
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Note:
        """Create Note from database row."""
        return cls(
            id=row["id"],
            chat_id=row["chat_id"],
            phone_number=row.get("phone_number") or None,
            text=row["text"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


class NoteCount(_CamelModel):
    chat_id: str
    count: int


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


class NoteCreate(_CamelModel):
    """Body of POST /api/notes."""

    chat_id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)

    @field_validator("chat_id", "text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)


class NoteUpdate(BaseModel):
    """Body of PUT /api/notes/{id}; the chat of a note never changes."""

    text: str = Field(..., min_length=1)

    @field_validator("text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)
