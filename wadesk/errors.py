"""
Domain error taxonomy shared by repositories, services and routes.

Routes translate these into HTTP status codes; anything else that escapes a
handler is treated as an internal error and sanitized before reaching the
client.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base exception for dashboard errors."""

    status_code: int = 500


class InvalidRequestError(DashboardError):
    """A required field is missing or malformed."""

    status_code = 400


class ForbiddenError(DashboardError):
    """Attempt to edit or delete a protected record (the system tag)."""

    status_code = 403


class NotFoundError(DashboardError):
    """Referenced record does not exist."""

    status_code = 404


class StoreNotReadyError(DashboardError):
    """The embedded store has not finished opening."""

    status_code = 503


class UpstreamUnavailableError(DashboardError):
    """The automation client has not reported ready yet.

    Never surfaced as an HTTP error: realtime handlers turn it into a
    ``*_error`` event or an empty result.
    """

    status_code = 503
