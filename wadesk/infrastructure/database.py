"""Embedded store for tags, notes and quick replies

**DATABASE POLICY**: wadesk keeps ONE SQLite file (``data.sqlite`` by default,
``WADESK_DB_PATH`` to override) holding four tables: ``tags``,
``tag_assignments``, ``notes`` and ``quick_replies``.

The store is opened into an in-memory SQLite connection. Every mutation goes
through ``ChatStore.transaction()``, which commits and then re-serializes the
whole database to its backing file before returning, so anything broadcast
afterwards describes state that already survived to disk.

One ``ChatStore`` is constructed at startup and handed to every handler via
the app state; nothing in the package reaches for a module-level connection.
"""

from __future__ import annotations

import os
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from wadesk.config import SYSTEM_TAG_NAME
from wadesk.errors import StoreNotReadyError
from wadesk.infrastructure.database_schema import ensure_system_tag, init_schema
from wadesk.infrastructure.database_schema import validate_schema as _validate_schema
from wadesk.observability.logging import get_logger
from wadesk.observability.telemetry import counter, log_event

logger = get_logger(__name__)


class ChatStore:
    """
    Process-wide handle on the embedded store.

    ``ready`` flips to True only after the schema is initialized and the first
    flush succeeded; until then every access raises ``StoreNotReadyError``.
    """

    def __init__(self, db_path: Path | str | None):
        """
        Args:
            db_path: Backing file. ``None`` keeps the store purely in memory
                (flushes become no-ops), which tests use.
        """
        self.db_path = Path(db_path) if db_path is not None else None
        self.ready = False
        self._conn: sqlite3.Connection | None = None

    def open(self) -> None:
        """
        Load the backing file (if any) and bring the schema up to date.

        Side Effects:
            - Reads the backing file into an in-memory connection
            - Creates tables, runs migrations, creates the system tag
            - Writes the backing file
            - Sets self.ready
        """
        conn = sqlite3.connect(":memory:", check_same_thread=False)

        if self.db_path is not None and self.db_path.exists():
            self._load_backing_file(conn)
            logger.info("Loaded store from %s", self.db_path)

        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        init_schema(conn)

        self._conn = conn
        self.flush()
        self.ready = True
        log_event("store.opened", path=str(self.db_path) if self.db_path else ":memory:")

    def close(self) -> None:
        """
        Close the in-memory connection

        Side Effects:
            - Sets self.ready to False
        """
        self.ready = False
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _load_backing_file(self, conn: sqlite3.Connection) -> None:
        source = sqlite3.connect(str(self.db_path))
        try:
            source.backup(conn)
        finally:
            source.close()

    def _require_connection(self) -> sqlite3.Connection:
        if not self.ready or self._conn is None:
            raise StoreNotReadyError("db not ready")
        return self._conn

    @contextmanager
    def read(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Connection for queries.

        Usage:
            with store.read() as conn:
                rows = conn.execute("SELECT * FROM tags").fetchall()
        """
        yield self._require_connection()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for mutations

        Commits and flushes to the backing file on success, rolls back on error.
        If the flush fails the committed change is discarded too: the
        in-memory store is reloaded from the last good backing file.

        Usage:
            with store.transaction() as conn:
                conn.execute("INSERT INTO notes ...")
            # committed and on disk here

        Side Effects:
            - Commits the transaction
            - Rewrites the backing file (see flush())
            - Rolls back on exception (discards uncommitted changes)
            - Reloads from the backing file when the flush fails
        """
        conn = self._require_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

        try:
            self.flush()
        except Exception as e:
            counter("store.flush_failures")
            logger.error("Flush to %s failed, restoring last saved state: %s", self.db_path, e)
            self._load_backing_file(conn)
            raise

    def flush(self) -> None:
        """
        Re-serialize the whole database to the backing file.

        The copy is written next to the target and moved over it, so a crash
        mid-write leaves the previous file intact.

        Side Effects:
            - Writes <db_path>.tmp and atomically replaces <db_path>
            - Increments the store.flush counter
        """
        if self._conn is None:
            raise StoreNotReadyError("db not ready")
        if self.db_path is None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.db_path.with_name(self.db_path.name + ".tmp")

        target = sqlite3.connect(str(tmp_path))
        try:
            self._conn.backup(target)
        finally:
            target.close()

        os.replace(tmp_path, self.db_path)
        counter("store.flush")
        logger.debug("Flushed store to %s", self.db_path)

    def system_tag_id(self) -> int:
        """Id of the "Archived" system tag, recreated if it went missing."""
        with self.read() as conn:
            row = conn.execute(
                "SELECT id FROM tags WHERE name = ? AND is_system = 1 ORDER BY id LIMIT 1",
                (SYSTEM_TAG_NAME,),
            ).fetchone()
        if row:
            return row["id"]
        with self.transaction() as conn:
            return ensure_system_tag(conn)

    def validate_schema(self) -> bool:
        """
        Validate the open store has the expected schema

        Raises:
            ValueError: If tables or columns are missing
        """
        with self.read() as conn:
            return _validate_schema(conn)
