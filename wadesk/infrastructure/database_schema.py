"""
Database schema initialization for wadesk.

Contains the SQL schema, the additive column migrations for stores written by
older releases, and the system-tag invariant. Kept apart from database.py so
the store class stays about connection lifecycle and durability.
"""

from __future__ import annotations

import sqlite3

from wadesk.config import SYSTEM_TAG_COLOR, SYSTEM_TAG_NAME
from wadesk.observability.logging import get_logger
from wadesk.utils.phone import extract_phone

logger = get_logger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS quick_replies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        text TEXT NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS tags (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        color TEXT NOT NULL,
        is_system INTEGER DEFAULT 0,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS tag_assignments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        tag_id INTEGER NOT NULL,
        chat_id TEXT NOT NULL,
        phone_number TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS notes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        chat_id TEXT NOT NULL,
        phone_number TEXT,
        text TEXT NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME
    );

    CREATE INDEX IF NOT EXISTS idx_tag_assignments_tag_chat
    ON tag_assignments(tag_id, chat_id);

    CREATE INDEX IF NOT EXISTS idx_notes_chat
    ON notes(chat_id);
"""

# Indexes on migrated columns can only be created once the column exists
POST_MIGRATION_INDEXES = """
    CREATE INDEX IF NOT EXISTS idx_tag_assignments_phone
    ON tag_assignments(phone_number);

    CREATE INDEX IF NOT EXISTS idx_notes_phone
    ON notes(phone_number);
"""

# (table, column, column definition, backfill phone from chat_id)
COLUMN_MIGRATIONS: list[tuple[str, str, str, bool]] = [
    ("tag_assignments", "phone_number", "TEXT", True),
    ("tags", "is_system", "INTEGER DEFAULT 0", False),
    ("notes", "phone_number", "TEXT", True),
    ("notes", "updated_at", "DATETIME", False),
]

REQUIRED_TABLES = {
    "quick_replies": ["id", "text", "created_at"],
    "tags": ["id", "name", "color", "is_system", "created_at"],
    "tag_assignments": ["id", "tag_id", "chat_id", "phone_number", "created_at"],
    "notes": ["id", "chat_id", "phone_number", "text", "created_at", "updated_at"],
}


def _check_identifier(name: str) -> None:
    # Identifiers cannot be bound as parameters; only hardcoded names reach here
    if not name.replace("_", "").isalnum():
        raise ValueError(f"Invalid identifier: {name}")


def column_exists(conn: sqlite3.Connection, table: str, column: str) -> bool:
    """Probe a column by selecting it; SQLite reports ``no such column`` when absent."""
    _check_identifier(table)
    _check_identifier(column)
    try:
        conn.execute(f"SELECT {column} FROM {table} LIMIT 1")
    except sqlite3.OperationalError as e:
        if "no such column" in str(e).lower():
            return False
        raise
    return True


def backfill_phone_numbers(conn: sqlite3.Connection, table: str) -> int:
    """
    Fill ``phone_number`` from ``chat_id`` for rows that have none.

    Returns:
        Number of rows updated
    """
    _check_identifier(table)
    rows = conn.execute(
        f"SELECT id, chat_id FROM {table} WHERE phone_number IS NULL OR phone_number = ''"
    ).fetchall()

    updated = 0
    for row in rows:
        phone = extract_phone(row[1])
        if phone:
            conn.execute(f"UPDATE {table} SET phone_number = ? WHERE id = ?", (phone, row[0]))
            updated += 1
    return updated


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """
    Apply additive column migrations guarded by existence checks.

    Returns:
        ``table.column`` names that were added

    Side Effects:
        - ALTERs tables missing a column
        - Backfills derived phone numbers on newly added phone columns
    """
    applied = []
    for table, column, definition, backfill in COLUMN_MIGRATIONS:
        if column_exists(conn, table, column):
            continue

        logger.info("Migrating %s table: adding %s column...", table, column)
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")
        applied.append(f"{table}.{column}")

        if backfill:
            count = backfill_phone_numbers(conn, table)
            logger.info("Migration complete: backfilled %d %s rows with phone numbers", count, table)

    return applied


def ensure_system_tag(conn: sqlite3.Connection) -> int:
    """
    Make sure exactly one system tag named "Archived" exists.

    Returns:
        The system tag id

    Side Effects:
        - Inserts the system tag if missing
    """
    row = conn.execute(
        "SELECT id FROM tags WHERE name = ? AND is_system = 1 ORDER BY id LIMIT 1",
        (SYSTEM_TAG_NAME,),
    ).fetchone()
    if row:
        return row[0]

    logger.info('Creating permanent "%s" system tag...', SYSTEM_TAG_NAME)
    cursor = conn.execute(
        "INSERT INTO tags (name, color, is_system) VALUES (?, ?, 1)",
        (SYSTEM_TAG_NAME, SYSTEM_TAG_COLOR),
    )
    return cursor.lastrowid


def init_schema(conn: sqlite3.Connection) -> None:
    """
    Initialize the schema on an open connection (idempotent).

    Side Effects:
        - Creates tables and indexes if they don't exist
        - Runs column migrations and phone backfills
        - Creates the system tag when missing
        - Commits
    """
    conn.executescript(SCHEMA)
    applied = run_migrations(conn)
    conn.executescript(POST_MIGRATION_INDEXES)
    ensure_system_tag(conn)
    conn.commit()

    if applied:
        logger.info("Applied schema migrations: %s", ", ".join(applied))


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate the store has the expected schema

    Returns:
        True if valid

    Raises:
        ValueError: If tables or columns are missing
    """
    cursor = conn.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(REQUIRED_TABLES) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {missing_tables}")

    for table, required_cols in REQUIRED_TABLES.items():
        _check_identifier(table)
        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}

        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table '{table}' missing columns: {missing_cols}")

    return True
