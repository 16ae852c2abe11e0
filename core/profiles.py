"""
Profile Service.

Check, read, upsert and patch the per-(user, experience) profile. Every
operation takes the caller's AuthContext explicitly and returns a Result.

Checks run in a fixed order (ownership, schema, existence/conflict, write)
and a rejected call never touches the store.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import ValidationError

from db import db
from models.auth import AuthContext
from models.errors import ErrorKind, Result
from models.profile import (
    ROLE_SCHEMAS,
    ProfileInput,
    ProfilePatch,
    ProfileRecord,
    ProfileStatus,
    format_validation_errors,
)

logger = logging.getLogger("tup-matching")

MSG_NOT_FOUND = "Profile not found"
MSG_CREATE_OWN = "You can only create your own profile"
MSG_UPDATE_OWN = "You can only update your own profile"
MSG_INVALID_DATA = "Invalid profile data"
MSG_ROLE_LOCKED = "Role cannot be changed after the profile has been completed"
MSG_INTERNAL = "Internal server error"

# Global service instance
_profile_service: Optional["ProfileService"] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _next_timestamp(previous: str | datetime | None) -> str:
    """Current UTC time, nudged forward so it is strictly after `previous`."""
    now = _now()
    if previous:
        if isinstance(previous, str):
            previous = datetime.fromisoformat(previous)
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    return now.isoformat(timespec="microseconds")


def _merge(stored: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Shallow merge; a None value removes the key."""
    merged = dict(stored)
    for key, value in changes.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


class ProfileService:
    """
    Profile lifecycle operations over the database backend.

    The backend is synchronous; calls run in a worker thread.
    """

    def __init__(self, store=None):
        self._store = store or db

    async def _load(self, user_id: str, experience_id: str) -> ProfileRecord | None:
        row = await asyncio.to_thread(self._store.get_profile, user_id, experience_id)
        return ProfileRecord.from_row(row) if row else None

    async def _save(self, row: dict[str, Any]) -> ProfileRecord:
        stored = await asyncio.to_thread(self._store.upsert_profile, row)
        return ProfileRecord.from_row(stored)

    async def _guarded(self, operation: str, coro) -> Result:
        try:
            return await coro
        except Exception as e:
            logger.error(f"[PROFILE] Unexpected error during {operation}: {e}", exc_info=True)
            return Result.fail(ErrorKind.INTERNAL, MSG_INTERNAL)

    # =========================================================================
    # READS
    # =========================================================================

    async def check(self, ctx: AuthContext) -> Result[ProfileStatus]:
        """Whether the caller has a profile in the context's experience."""
        return await self._guarded("check", self._check(ctx))

    async def _check(self, ctx: AuthContext) -> Result[ProfileStatus]:
        record = await self._load(ctx.user_id, ctx.experience_id)
        if record is None:
            return Result.ok(ProfileStatus(has_profile=False, is_complete=False, role=None))
        return Result.ok(
            ProfileStatus(has_profile=True, is_complete=record.is_complete, role=record.role)
        )

    async def get(self, ctx: AuthContext, target_user_id: str) -> Result[ProfileRecord]:
        """
        Read any member's profile in the context's experience.

        Any authorized member may read; writes are owner-only.
        """
        return await self._guarded("get", self._get(ctx, target_user_id))

    async def _get(self, ctx: AuthContext, target_user_id: str) -> Result[ProfileRecord]:
        record = await self._load(target_user_id, ctx.experience_id)
        if record is None:
            return Result.fail(ErrorKind.NOT_FOUND, MSG_NOT_FOUND)
        return Result.ok(record)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def upsert(self, ctx: AuthContext, profile: ProfileInput) -> Result[ProfileRecord]:
        """
        Create or replace the caller's profile in the context's experience.

        Drafts validate only supplied fields; complete profiles validate the
        strict role schema. The role is locked once the profile has ever been
        complete.
        """
        return await self._guarded("upsert", self._upsert(ctx, profile))

    async def _upsert(self, ctx: AuthContext, profile: ProfileInput) -> Result[ProfileRecord]:
        if profile.user_id != ctx.user_id:
            logger.info(f"[PROFILE] User {ctx.user_id} tried to write profile of {profile.user_id}")
            return Result.fail(ErrorKind.FORBIDDEN, MSG_CREATE_OWN)

        try:
            data = ROLE_SCHEMAS[profile.role].validate(profile.data, profile.is_complete)
        except ValidationError as e:
            return Result.fail(
                ErrorKind.INVALID_PAYLOAD, MSG_INVALID_DATA, details=format_validation_errors(e)
            )

        existing = await self._load(ctx.user_id, ctx.experience_id)
        if existing and existing.was_ever_complete and existing.role != profile.role:
            return Result.fail(ErrorKind.CONFLICT, MSG_ROLE_LOCKED)

        record = await self._write(ctx, existing, profile.role, data, profile.is_complete)
        logger.info(
            f"[PROFILE] {'Updated' if existing else 'Created'} {record.role.value} profile "
            f"for {ctx.user_id} in {ctx.experience_id} (complete: {record.is_complete})"
        )
        return Result.ok(record)

    async def update(
        self,
        ctx: AuthContext,
        target_user_id: str,
        patch: ProfilePatch,
    ) -> Result[ProfileRecord]:
        """
        Patch the caller's profile.

        `patch.data` is merged onto the stored data (None removes a key) and
        the merged result is re-validated against the stored role.
        """
        return await self._guarded("update", self._update(ctx, target_user_id, patch))

    async def _update(
        self,
        ctx: AuthContext,
        target_user_id: str,
        patch: ProfilePatch,
    ) -> Result[ProfileRecord]:
        if target_user_id != ctx.user_id:
            logger.info(f"[PROFILE] User {ctx.user_id} tried to patch profile of {target_user_id}")
            return Result.fail(ErrorKind.FORBIDDEN, MSG_UPDATE_OWN)

        existing = await self._load(ctx.user_id, ctx.experience_id)
        if existing is None:
            return Result.fail(ErrorKind.NOT_FOUND, MSG_NOT_FOUND)

        merged = _merge(existing.data, patch.data or {})
        is_complete = existing.is_complete if patch.is_complete is None else patch.is_complete

        try:
            data = ROLE_SCHEMAS[existing.role].validate(merged, is_complete)
        except ValidationError as e:
            return Result.fail(
                ErrorKind.INVALID_PAYLOAD, MSG_INVALID_DATA, details=format_validation_errors(e)
            )

        record = await self._write(ctx, existing, existing.role, data, is_complete)
        logger.info(f"[PROFILE] Patched profile for {ctx.user_id} in {ctx.experience_id}")
        return Result.ok(record)

    async def _write(
        self,
        ctx: AuthContext,
        existing: ProfileRecord | None,
        role,
        data: dict[str, Any],
        is_complete: bool,
    ) -> ProfileRecord:
        now = _next_timestamp(existing.updated_at if existing else None)

        completed_at = None
        if existing and existing.completed_at:
            completed_at = existing.completed_at.isoformat()
        elif is_complete:
            completed_at = now

        return await self._save({
            "id": existing.id if existing else str(uuid.uuid4()),
            "user_id": ctx.user_id,
            "experience_id": ctx.experience_id,
            "role": role.value,
            "data": data,
            "is_complete": is_complete,
            "created_at": existing.created_at.isoformat() if existing else now,
            "updated_at": now,
            "completed_at": completed_at,
        })


def get_profile_service() -> ProfileService:
    """Get the global profile service, creating it on first use."""
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService()
    return _profile_service
