"""
Chat identifier and phone number normalization.

Direct conversations are addressed as ``<digits>@c.us``; groups, broadcast
lists and newsletters carry their own server suffix or a ``-`` separated
multi-party local part and have no phone number.
"""

from __future__ import annotations

import re

from wadesk.config import DIRECT_CHAT_SUFFIX

_NON_DIGITS = re.compile(r"[^0-9]")
_MULTI_PARTY_MARKERS = ("@g.us", "@broadcast", "@newsletter")


def normalize_phone(raw: object) -> str | None:
    """Keep digits and a leading ``+``; ``None`` when no digits remain.

    >>> normalize_phone(" +1 (555) 010-9999 ")
    '+15550109999'
    >>> normalize_phone("n/a") is None
    True
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    digits = _NON_DIGITS.sub("", text)
    if not digits:
        return None
    return f"+{digits}" if text.startswith("+") else digits


def extract_phone(chat_id: object) -> str | None:
    """Derive the phone number of a direct conversation, ``None`` for anything else."""
    if not chat_id:
        return None
    text = str(chat_id)
    if any(marker in text for marker in _MULTI_PARTY_MARKERS):
        return None
    local_part = text.split("@", 1)[0]
    if "-" in local_part:
        return None
    return normalize_phone(local_part)


def is_direct_chat(chat_id: object) -> bool:
    return extract_phone(chat_id) is not None


def chat_id_from_phone(phone: str) -> str:
    """Synthesize the direct-conversation id for an already-normalized phone.

    Chat ids carry bare digits, so a leading ``+`` is dropped.
    """
    if "@" in phone:
        return phone
    return f"{phone.lstrip('+')}{DIRECT_CHAT_SUFFIX}"


def coerce_chat_id(raw: object) -> str | None:
    """Promote bare phone-like identifiers to direct-conversation ids.

    Identifiers that already carry a server suffix are returned untouched;
    values with nothing phone-like in them are kept verbatim.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    if "@" in text:
        return text
    phone = normalize_phone(text)
    return chat_id_from_phone(phone) if phone else text
