"""
Upload Broker.

Validates a pitch deck and hands it to the blob store, returning the public
URL. Stateless; the URL is only persisted if the caller later saves it on
their profile.
"""

import asyncio
import logging
import re
import uuid
from pathlib import PurePosixPath
from typing import Optional

from config import settings
from integrations.storage import StorageClient, get_storage_client
from models.auth import AuthContext
from models.errors import ErrorKind, Result
from models.upload import UploadedArtifact

logger = logging.getLogger("tup-matching")

MSG_UNAUTHENTICATED = "Invalid or missing authentication token"
MSG_NO_FILE = "No file provided"
MSG_EMPTY = "File is empty"
MSG_BAD_TYPE = "Invalid file type. Only PDF, PPT, and PPTX files are allowed."
MSG_UPLOAD_FAILED = "Failed to upload file. Please try again."

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Global broker instance
_upload_broker: Optional["UploadBroker"] = None


def sanitize_filename(filename: str | None) -> str:
    """Reduce a client filename to a safe single path segment."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name[:128] or "upload"


class UploadBroker:
    """Validated pitch-deck uploads into the blob store."""

    def __init__(
        self,
        storage: StorageClient | None = None,
        bucket: str | None = None,
        max_bytes: int | None = None,
        allowed_types: set[str] | None = None,
    ):
        self._storage = storage
        self._bucket = bucket or settings.BLOB_STORE_BUCKET
        self._max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
        self._allowed_types = allowed_types or settings.ALLOWED_UPLOAD_TYPES

    @property
    def storage(self) -> StorageClient:
        return self._storage or get_storage_client()

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def _too_large_message(self) -> str:
        megabytes = self._max_bytes / (1024 * 1024)
        label = f"{int(megabytes)}MB" if megabytes.is_integer() else f"{megabytes:.1f}MB"
        return f"File too large. Maximum size is {label}."

    def _deadline(self, size: int) -> float:
        return settings.request_deadline_seconds + size / settings.UPLOAD_MIN_BYTES_PER_SECOND

    def validate(self, filename: str | None, content_type: str | None, data: bytes | None) -> str | None:
        """
        Check the upload preconditions.

        Returns:
            A human-readable rejection reason, or None if the file is acceptable
        """
        if data is None or not filename:
            return MSG_NO_FILE
        if len(data) == 0:
            return MSG_EMPTY
        if (content_type or "").split(";")[0].strip().lower() not in self._allowed_types:
            return MSG_BAD_TYPE
        if len(data) > self._max_bytes:
            return self._too_large_message()
        return None

    async def upload(
        self,
        ctx: AuthContext | None,
        filename: str | None,
        content_type: str | None,
        data: bytes | None,
    ) -> Result[UploadedArtifact]:
        """
        Store a pitch deck under a fresh key and return its public URL.

        Every call produces a new object, so re-uploading the same file yields
        an independent URL.
        """
        if ctx is None:
            return Result.fail(ErrorKind.UNAUTHENTICATED, MSG_UNAUTHENTICATED)

        reason = self.validate(filename, content_type, data)
        if reason:
            logger.info(f"[UPLOAD] Rejected upload from {ctx.user_id}: {reason}")
            return Result.fail(ErrorKind.INVALID_PAYLOAD, reason)

        content_type = content_type.split(";")[0].strip().lower()
        key = f"{ctx.experience_id}/{ctx.user_id}/{uuid.uuid4().hex}/{sanitize_filename(filename)}"
        deadline = self._deadline(len(data))

        try:
            result = await asyncio.wait_for(
                self.storage.upload(
                    self._bucket,
                    key,
                    data,
                    content_type=content_type,
                    metadata={
                        "user_id": ctx.user_id,
                        "experience_id": ctx.experience_id,
                        "original_filename": filename,
                    },
                ),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[UPLOAD] Upload of {key} timed out after {deadline:.1f}s")
            return Result.fail(ErrorKind.UPLOAD_FAILED, MSG_UPLOAD_FAILED)

        if not result.success or not result.file or not result.file.url:
            logger.error(f"[UPLOAD] Storage rejected {key}: {result.error}")
            return Result.fail(ErrorKind.UPLOAD_FAILED, MSG_UPLOAD_FAILED)

        logger.info(f"[UPLOAD] Stored {key} ({len(data)} bytes) for {ctx.user_id}")
        return Result.ok(
            UploadedArtifact(
                url=result.file.url,
                filename=filename,
                size=len(data),
                content_type=content_type,
            )
        )


def get_upload_broker() -> UploadBroker:
    """Get the global upload broker, creating it on first use."""
    global _upload_broker
    if _upload_broker is None:
        _upload_broker = UploadBroker()
    return _upload_broker
