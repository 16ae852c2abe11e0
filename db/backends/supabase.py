"""
Supabase database backend implementation.

Production persistence. Expects a `profiles` table matching the SQLite
schema (data as jsonb, UNIQUE (user_id, experience_id)).
"""

import logging
from typing import Any

from db.base import PROFILE_COLUMNS, DatabaseBackend

logger = logging.getLogger("tup-matching")

TABLE = "profiles"

# Columns an update may overwrite on an existing row
UPDATABLE_COLUMNS = ("role", "data", "is_complete", "updated_at")


class SupabaseOperationError(Exception):
    """Custom exception for Supabase operation failures."""
    pass


class SupabaseBackend(DatabaseBackend):
    """
    Supabase database backend implementation.

    The client is created lazily so importing this module never touches the
    network.
    """

    def __init__(self, url: str, key: str | None, timeout: float = 5.0):
        self._url = url
        self._key = key
        self._timeout = timeout
        self._client = None

        if not self._url or not self._key:
            logger.warning("[SUPABASE] Credentials not configured. Set DATABASE_URL and DATABASE_SERVICE_KEY")

    @property
    def name(self) -> str:
        return "supabase"

    def _get_client(self):
        """Get or create Supabase client (lazy initialization)."""
        if self._client is not None:
            return self._client

        if not self._url or not self._key:
            raise RuntimeError("Supabase credentials not configured")

        from supabase import ClientOptions, create_client

        self._client = create_client(
            self._url,
            self._key,
            options=ClientOptions(postgrest_client_timeout=self._timeout),
        )
        logger.info("[SUPABASE] Client initialized successfully")
        return self._client

    def init_db(self) -> None:
        """
        Verify connectivity.

        The Supabase schema is managed through migrations, not created here.
        """
        self._get_client()
        logger.info(f"[SUPABASE] Using table '{TABLE}' for profiles")

    @staticmethod
    def _normalize(row: dict[str, Any]) -> dict[str, Any]:
        result = {column: row.get(column) for column in PROFILE_COLUMNS}
        result["data"] = result["data"] or {}
        result["is_complete"] = bool(result["is_complete"])
        return result

    # =========================================================================
    # PROFILES
    # =========================================================================

    def get_profile(self, user_id: str, experience_id: str) -> dict[str, Any] | None:
        response = (
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .eq("experience_id", experience_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self._normalize(response.data[0])

    def _table(self):
        return self._get_client().table(TABLE)

    def upsert_profile(self, row: dict[str, Any]) -> dict[str, Any]:
        """
        Insert or update keyed on (user_id, experience_id).

        PostgREST merge-upserts overwrite every column sent, so this is done
        as an insert that ignores duplicates followed by an update that never
        sends id or created_at and only fills completed_at while it is null.
        """
        values = {column: row.get(column) for column in PROFILE_COLUMNS}
        user_id, experience_id = values["user_id"], values["experience_id"]
        try:
            inserted = (
                self._table()
                .upsert(values, on_conflict="user_id,experience_id", ignore_duplicates=True)
                .execute()
            )
            if inserted.data:
                return self._normalize(inserted.data[0])

            changes = {column: values[column] for column in UPDATABLE_COLUMNS}
            self._table().update(changes).eq("user_id", user_id).eq("experience_id", experience_id).execute()
            if values["completed_at"] is not None:
                (
                    self._table()
                    .update({"completed_at": values["completed_at"]})
                    .eq("user_id", user_id)
                    .eq("experience_id", experience_id)
                    .is_("completed_at", "null")
                    .execute()
                )
            stored = self.get_profile(user_id, experience_id)
        except Exception as e:
            logger.error(f"[SUPABASE] Error upserting profile {user_id}/{experience_id}: {e}")
            raise SupabaseOperationError(str(e)) from e

        if stored is None:
            raise SupabaseOperationError("Upsert left no row")
        return stored
