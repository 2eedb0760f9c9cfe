"""SQLite connection handling and schema bootstrap."""

from __future__ import annotations

import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

from legal_rag.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA foreign_keys=ON;",
    "PRAGMA temp_store=MEMORY;",
)

SCHEMA_DIR = Path(__file__).parent
_PROGRESS_STEPS = 1000


class SQLiteDatabase:
    """One lazily opened connection shared by the document and chunk stores.

    FastAPI runs sync routes in a threadpool, so every statement, fetch and
    commit happens while holding ``lock``. ``deadline`` keeps the lock for its
    whole block so the progress handler it installs belongs to one caller.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path).expanduser()
        self.full_text_available = False
        self.lock = threading.RLock()
        self._connection: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        with self.lock:
            if self._connection is None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                for pragma in DEFAULT_PRAGMAS:
                    conn.execute(pragma)
                self._connection = conn
            return self._connection

    def close(self) -> None:
        with self.lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    def executescript(self, script: str) -> None:
        with self.lock:
            self.connect().executescript(script)

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        """Run one statement; hold ``lock`` while consuming the returned cursor."""
        with self.lock:
            return self.connect().execute(sql, params or [])

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[sqlite3.Row]:
        with self.lock:
            return self.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Row | None:
        with self.lock:
            return self.execute(sql, params).fetchone()

    def write(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Execute and commit one statement, returning the affected row count."""
        with self.lock:
            conn = self.connect()
            try:
                cursor = conn.execute(sql, params or [])
            except sqlite3.Error:
                conn.rollback()
                raise
            conn.commit()
            return cursor.rowcount

    @contextmanager
    def deadline(self, seconds: float | None) -> Iterator[None]:
        """Abort statements running longer than ``seconds`` with ``OperationalError``."""
        with self.lock:
            if not seconds:
                yield
                return
            conn = self.connect()
            expires_at = time.monotonic() + seconds

            def _check() -> int:
                return 1 if time.monotonic() > expires_at else 0

            conn.set_progress_handler(_check, _PROGRESS_STEPS)
            try:
                yield
            finally:
                conn.set_progress_handler(None, 0)

    def ensure_schema(self) -> None:
        """Create core tables, then the full-text index when FTS5 is available."""
        self.executescript((SCHEMA_DIR / "schema.sql").read_text(encoding="utf-8"))
        try:
            self.executescript((SCHEMA_DIR / "schema_fts.sql").read_text(encoding="utf-8"))
        except sqlite3.OperationalError as exc:
            self.full_text_available = False
            logger.warning("Full-text index unavailable, substring search only: %s", exc)
        else:
            self.full_text_available = True


def iter_rows(cursor: sqlite3.Cursor) -> Iterator[sqlite3.Row]:
    """Yield rows from a cursor lazily."""
    while True:
        row = cursor.fetchone()
        if row is None:
            break
        yield row


__all__ = ["SQLiteDatabase", "iter_rows"]
