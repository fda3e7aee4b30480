"""
Chat view models.

Nothing here is persisted: views are rebuilt from the automation client each
time and serialized in the camelCase shape the dashboard renders.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """camelCase dict for realtime frames; an absent ``media`` is omitted."""
        data = self.model_dump(by_alias=True)
        if data.get("media", True) is None:
            del data["media"]
        return data


class MediaView(_WireModel):
    data: str = Field(..., description="data: URL with the base64 payload")
    mimetype: str
    filename: str | None = None


class HistoryItem(_WireModel):
    """One message in a chat card."""

    id: str
    sender: str | None = Field(default=None, alias="from")
    body: str = ""
    timestamp: int
    from_me: bool = False
    has_media: bool = False
    mimetype: str | None = None
    filename: str | None = None
    is_sticker: bool = False
    media: MediaView | None = None


class ChatView(_WireModel):
    """A conversation as shown in the chat list."""

    chat_id: str
    name: str | None = None
    unread_count: int = 0
    history: list[HistoryItem] = Field(default_factory=list)
    last_timestamp: int = 0

    def to_wire(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude={"history"})
        data["history"] = [item.to_wire() for item in self.history]
        return data


class FeedMessage(_WireModel):
    """Entry of the flat recent-messages feed."""

    id: str
    chat_id: str
    sender: str | None = Field(default=None, alias="from")
    body: str
    timestamp: int


class FullChatMessage(_WireModel):
    """Message of an opened conversation; media is inlined when present."""

    id: str
    sender: str | None = Field(default=None, alias="from")
    body: str = ""
    timestamp: int
    from_me: bool = False
    media: MediaView | None = None


class FullChat(_WireModel):
    chat_id: str
    messages: list[FullChatMessage] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return {"chatId": self.chat_id, "messages": [m.to_wire() for m in self.messages]}
