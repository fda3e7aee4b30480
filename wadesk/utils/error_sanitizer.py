"""
Client-safe error messages for the HTTP API.

Anything that reaches a dashboard user must not carry store internals, file
paths, automation client internals, or the chat identifiers and phone
numbers of other conversations.
"""

from __future__ import annotations

import re

from wadesk.observability.logging import get_logger

logger = get_logger(__name__)

# Grouped so the log line says which kind of detail was caught
SENSITIVE_PATTERNS: dict[str, re.Pattern[str]] = {
    "path": re.compile(r"/[^\s]+\.(py|sqlite|db|json)|[A-Za-z]:\\[^\s]+"),
    "traceback": re.compile(r"Traceback \(most recent call last\)|File \".*\"|line \d+"),
    "store": re.compile(
        r"sqlite3?\.|(UNIQUE|FOREIGN KEY|NOT NULL) constraint|no such (table|column)"
        r"|database is locked|unable to open database",
        re.IGNORECASE,
    ),
    "module": re.compile(r"wadesk\.[a-z_.]+"),
    "chat_id": re.compile(r"[\w.+-]+@(c|g)\.us|@broadcast|@newsletter|@lid"),
    "phone": re.compile(r"\+?\d[\d\s().-]{6,}\d"),
    "automation": re.compile(
        r"Evaluation failed|Protocol error|Target closed|Session closed|Execution context",
        re.IGNORECASE,
    ),
}

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    403: "Access denied.",
    404: "Resource not found.",
    500: "An internal error occurred. Please try again later.",
    503: "Service temporarily unavailable.",
}

_CLIENT_MESSAGE_MAX_LENGTH = 100


def _generic(status_code: int) -> str:
    return GENERIC_MESSAGES.get(status_code, "An error occurred.")


def sanitize_error_message(message: str, status_code: int = 500) -> str:
    """
    Sanitize an error message before it is returned to a client.

    Server errors always get the generic message for their status. Short,
    flat client-error messages ("name and color required") pass through
    unless they carry one of the sensitive patterns.

    Args:
        message: The original error message
        status_code: HTTP status code (selects the generic fallback)

    Returns:
        Message safe for client consumption
    """
    if not message:
        return _generic(status_code)

    for kind, pattern in SENSITIVE_PATTERNS.items():
        if pattern.search(message):
            logger.warning("Withheld %s detail from a %s response", kind, status_code)
            return _generic(status_code)

    if (
        400 <= status_code < 500
        and len(message) < _CLIENT_MESSAGE_MAX_LENGTH
        and not any(c in message for c in "{}[]\n")
    ):
        return message

    return _generic(status_code)
