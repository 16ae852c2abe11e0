"""
Abstract base class for database backends.
Each backend implements their own storage-specific syntax.
"""

from abc import ABC, abstractmethod
from typing import Any


PROFILE_COLUMNS = (
    "id",
    "user_id",
    "experience_id",
    "role",
    "data",
    "is_complete",
    "created_at",
    "updated_at",
    "completed_at",
)


class DatabaseBackend(ABC):
    """
    Abstract base class for database backends.

    Each backend (SQLite, Supabase) implements this interface with their own
    storage-specific syntax. Rows are plain dicts keyed by PROFILE_COLUMNS;
    `data` is a dict and `is_complete` a bool on the way in.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g., 'sqlite', 'supabase')."""
        pass

    @abstractmethod
    def init_db(self) -> None:
        """Initialize database schema."""
        pass

    # =========================================================================
    # PROFILES
    # =========================================================================

    @abstractmethod
    def get_profile(self, user_id: str, experience_id: str) -> dict[str, Any] | None:
        """Get the profile row for (user_id, experience_id), or None."""
        pass

    @abstractmethod
    def upsert_profile(self, row: dict[str, Any]) -> dict[str, Any]:
        """
        Atomically insert or update a profile keyed on (user_id, experience_id).

        On conflict the stored id and created_at are kept and completed_at is
        never cleared. Returns the stored row.
        """
        pass

    def close(self) -> None:
        """Release backend resources (no-op by default)."""
        return None
