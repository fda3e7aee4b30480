"""wadesk - WhatsApp desk: chat list, tags, notes and quick replies for a linked phone"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so lightweight modules load without FastAPI
def __getattr__(name: str):
    """
    Lazy imports to avoid loading the web stack when only importing lightweight modules.
    """
    if name == "ChatStore":
        from wadesk.infrastructure.database import ChatStore

        return ChatStore

    if name in ("extract_phone", "normalize_phone"):
        from wadesk.utils import phone

        if name == "extract_phone":
            return phone.extract_phone
        return phone.normalize_phone

    if name == "create_app":
        from wadesk.api.app import create_app

        return create_app

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
