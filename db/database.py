"""
Database Router - Selects and exposes the appropriate database backend.

The backend is chosen from the DATABASE_URL scheme:
    - sqlite:///path/to/file.db  -> SQLiteBackend
    - https://<project>.supabase.co -> SupabaseBackend (needs DATABASE_SERVICE_KEY)

Usage:
    from db.database import db

    row = db.get_profile(user_id, experience_id)
    stored = db.upsert_profile(row)
"""

import logging
from typing import Any

from config import settings
from db.base import DatabaseBackend

logger = logging.getLogger("tup-matching")

_backend: DatabaseBackend | None = None


def _create_backend() -> DatabaseBackend:
    """
    Build the configured database backend.

    Raises:
        RuntimeError: In production if Supabase credentials are missing
    """
    if settings.database_backend == "sqlite":
        from db.backends.sqlite import SQLiteBackend

        logger.info("[DB] Using SQLite backend")
        return SQLiteBackend(settings.sqlite_path)

    if not settings.DATABASE_SERVICE_KEY and settings.is_production:
        raise RuntimeError(
            "[DB] FATAL: DATABASE_SERVICE_KEY missing in production. "
            "Set it, or point DATABASE_URL at sqlite:/// if SQLite is intended."
        )

    from db.backends.supabase import SupabaseBackend

    logger.info("[DB] Using Supabase backend")
    return SupabaseBackend(
        settings.DATABASE_URL,
        settings.DATABASE_SERVICE_KEY,
        timeout=settings.request_deadline_seconds,
    )


def get_backend() -> DatabaseBackend:
    """Get the process-wide backend, creating and initializing it on first use."""
    global _backend
    if _backend is None:
        _backend = _create_backend()
        _backend.init_db()
    return _backend


def set_backend(backend: DatabaseBackend | None) -> None:
    """Replace the process-wide backend (tests install a per-test SQLite file)."""
    global _backend
    _backend = backend


def close_backend() -> None:
    """Close and drop the process-wide backend (called on shutdown)."""
    global _backend
    if _backend is not None:
        _backend.close()
    _backend = None


class _DatabaseNamespace:
    """
    Namespace wrapper to expose backend methods as db.method() calls.

    Resolves the backend on every call so a swapped backend takes effect
    immediately.
    """

    @property
    def backend_name(self) -> str:
        """Get the name of the current backend."""
        return get_backend().name

    def get_profile(self, user_id: str, experience_id: str) -> dict[str, Any] | None:
        return get_backend().get_profile(user_id, experience_id)

    def upsert_profile(self, row: dict[str, Any]) -> dict[str, Any]:
        return get_backend().upsert_profile(row)


# Create the singleton namespace
db = _DatabaseNamespace()
