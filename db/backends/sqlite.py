"""
SQLite database backend implementation.

Used for local development and tests (DATABASE_URL=sqlite:///path/to/file.db).
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from db.base import PROFILE_COLUMNS, DatabaseBackend

logger = logging.getLogger("tup-matching")


SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    experience_id TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('FOUNDER', 'INVESTOR')),
    data TEXT NOT NULL DEFAULT '{}',
    is_complete INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    completed_at TEXT,
    UNIQUE (user_id, experience_id)
);

CREATE INDEX IF NOT EXISTS idx_profiles_experience ON profiles (experience_id);
"""


class SQLiteBackend(DatabaseBackend):
    """SQLite database backend implementation."""

    def __init__(self, db_path: Path | str, timeout: float = 5.0):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to the database file (parent directories are created)
            timeout: Seconds to wait while the database is locked
        """
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        """Create a database connection."""
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(f"PRAGMA busy_timeout={int(self._timeout * 1000)};")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def init_db(self) -> None:
        """Initialize database with schema."""
        conn = self._connect()
        try:
            conn.executescript(SCHEMA)
            logger.info(f"[DB] SQLite database initialized at {self._db_path}")
        finally:
            conn.close()

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
        result = {key: row[key] for key in row.keys()}
        result["data"] = json.loads(result["data"] or "{}")
        result["is_complete"] = bool(result["is_complete"])
        return result

    # =========================================================================
    # PROFILES
    # =========================================================================

    def get_profile(self, user_id: str, experience_id: str) -> dict[str, Any] | None:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT * FROM profiles WHERE user_id = ? AND experience_id = ?",
                (user_id, experience_id),
            ).fetchone()
            return self._row_to_dict(row) if row else None
        finally:
            conn.close()

    def upsert_profile(self, row: dict[str, Any]) -> dict[str, Any]:
        values = {column: row.get(column) for column in PROFILE_COLUMNS}
        values["data"] = json.dumps(values["data"] or {})
        values["is_complete"] = 1 if values["is_complete"] else 0

        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(
                """
                INSERT INTO profiles (id, user_id, experience_id, role, data, is_complete,
                                      created_at, updated_at, completed_at)
                VALUES (:id, :user_id, :experience_id, :role, :data, :is_complete,
                        :created_at, :updated_at, :completed_at)
                ON CONFLICT(user_id, experience_id) DO UPDATE SET
                    role = excluded.role,
                    data = excluded.data,
                    is_complete = excluded.is_complete,
                    updated_at = excluded.updated_at,
                    completed_at = COALESCE(profiles.completed_at, excluded.completed_at)
                """,
                values,
            )
            stored = conn.execute(
                "SELECT * FROM profiles WHERE user_id = ? AND experience_id = ?",
                (values["user_id"], values["experience_id"]),
            ).fetchone()
            conn.execute("COMMIT")
        except Exception:
            # BEGIN itself may have failed on a busy database
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(
                f"[DB] Error upserting profile {values['user_id']}/{values['experience_id']}",
                exc_info=True,
            )
            raise
        finally:
            conn.close()

        logger.debug(f"[DB] Upserted profile {values['user_id']}/{values['experience_id']}")
        return self._row_to_dict(stored)
