"""HTTP and realtime API for wadesk."""

from __future__ import annotations


def main() -> None:
    """Run the API server (``wadesk-api`` console script)."""
    import uvicorn

    from wadesk.config import API_HOST, API_PORT, LOG_LEVEL

    uvicorn.run("wadesk.api.app:app", host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())
