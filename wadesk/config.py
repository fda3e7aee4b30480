"""Centralized configuration for the wadesk backend.

Re-exports everything from wadesk.infrastructure.settings so callers have a
single import point, then adds typed constants for the store, chat
composition, import reconciliation and the automation client.  Environment
variable overrides use safe defaults so the app starts without extra env
configuration.
"""

from __future__ import annotations

import os
from pathlib import Path

from wadesk.infrastructure.settings import *  # noqa: F401, F403
from wadesk.infrastructure.settings import PROJECT_ROOT

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Store ---
DB_PATH: Path = Path(os.getenv("WADESK_DB_PATH", str(PROJECT_ROOT / "data.sqlite")))
# Largest value SQLite can bind as INTEGER
MAX_ROW_ID: int = 2**63 - 1

# --- Chat composition ---
CHAT_HISTORY_LIMIT: int = 3
CHAT_RECENCY_WINDOW_SECONDS: int = 24 * 60 * 60
FULL_CHAT_MESSAGE_LIMIT: int = 200
FEED_MESSAGES_PER_CHAT: int = 5
FEED_MESSAGE_LIMIT: int = 200

# --- Tags ---
SYSTEM_TAG_NAME: str = "Archived"
SYSTEM_TAG_COLOR: str = "#808080"
DEFAULT_IMPORT_TAG_COLOR: str = "#AAAAAA"

# --- Identifiers ---
DIRECT_CHAT_SUFFIX: str = "@c.us"

# --- Automation client ---
AUTOMATION_CLIENT: str = os.getenv(
    "WADESK_AUTOMATION_CLIENT", "wadesk.automation.mock_client:from_env"
)
MOCK_DATA_PATH: Path = Path(
    os.getenv("WADESK_MOCK_DATA_PATH", str(PROJECT_ROOT / "mock-data.json"))
)
CLIENT_INIT_RETRIES: int = int(os.getenv("WADESK_CLIENT_INIT_RETRIES", "3"))
CLIENT_INIT_DELAY_SECONDS: float = float(os.getenv("WADESK_CLIENT_INIT_DELAY", "5.0"))

# --- Frontend ---
STATIC_DIR: Path | None = (
    Path(os.environ["WADESK_STATIC_DIR"]) if os.getenv("WADESK_STATIC_DIR") else None
)
