"""
Import descriptors and reports for tag and note reconciliation.

Import payloads come from older exports, other dashboards and hand-edited
files, so every descriptor accepts several spellings of each key (snake_case,
camelCase and short forms) and treats empty strings as absent. Requests keep
their items as raw values: each item is validated on its own so one malformed
entry is counted as failed instead of rejecting the whole batch.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field


def _blank_to_none(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _to_text(v: Any) -> Any:
    v = _blank_to_none(v)
    if isinstance(v, bool):
        return v
    if isinstance(v, int | float):
        return str(v)
    return v


ImportId = Annotated[int | str | None, BeforeValidator(_blank_to_none)]
ImportText = Annotated[str | None, BeforeValidator(_to_text)]


class _Descriptor(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TagDescriptor(_Descriptor):
    """One tag from an import payload."""

    id: ImportId = Field(
        default=None,
        validation_alias=AliasChoices("id", "tag_id", "tagId"),
        description="Id the tag had where it was exported; only used for remapping",
    )
    name: ImportText = Field(default=None, validation_alias=AliasChoices("name", "text"))
    color: ImportText = None
    is_system: bool = Field(default=False, validation_alias=AliasChoices("is_system", "isSystem"))

    @property
    def old_id_key(self) -> str | None:
        return None if self.id is None else str(self.id)


class AssignmentDescriptor(_Descriptor):
    """One tag assignment from an import payload."""

    tag_id: ImportId = Field(
        default=None, validation_alias=AliasChoices("tag_id", "tagId")
    )
    tag_name: ImportText = Field(
        default=None, validation_alias=AliasChoices("tag_name", "tagName", "tag")
    )
    chat_id: ImportText = Field(
        default=None, validation_alias=AliasChoices("chat_id", "chatId", "chat")
    )
    phone_number: ImportText = Field(
        default=None, validation_alias=AliasChoices("phone_number", "phoneNumber", "phone")
    )


class NoteDescriptor(_Descriptor):
    """One note from an import payload."""

    chat_id: ImportText = Field(
        default=None, validation_alias=AliasChoices("chatId", "chat_id", "chat")
    )
    phone_number: ImportText = Field(
        default=None, validation_alias=AliasChoices("phoneNumber", "phone_number", "phone")
    )
    text: ImportText = None
    created_at: ImportText = Field(
        default=None, validation_alias=AliasChoices("createdAt", "created_at")
    )


class TagImportRequest(BaseModel):
    """Body of POST /api/tags/import."""

    tags: list[Any] = Field(default_factory=list)
    assignments: list[Any] = Field(default_factory=list)
    replace: bool = False


class NoteImportRequest(BaseModel):
    """Body of POST /api/notes/import."""

    notes: list[Any] = Field(default_factory=list)
    replace: bool = False


class AssignmentImportReport(BaseModel):
    """Per-assignment outcome counts; ``imported + skipped + failed == total``."""

    total: int = 0
    imported: int = 0
    skipped: int = 0
    failed: int = 0


class TagImportReport(BaseModel):
    ok: bool = True
    imported: int = 0
    assignments: AssignmentImportReport = Field(default_factory=AssignmentImportReport)


class NoteImportReport(BaseModel):
    """Per-note outcome counts; ``imported + skipped + failed == total``."""

    ok: bool = True
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    total: int = 0


class ImportOutcome(str, Enum):
    """What happened to a single imported item."""

    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"
