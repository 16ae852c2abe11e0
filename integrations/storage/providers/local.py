"""
Local filesystem storage provider.

Stores uploads under LOCAL_STORAGE_PATH; the API serves them back through a
StaticFiles mount at /files. Used for development and tests.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from integrations.storage.base import StorageFile, StorageProvider, UploadResult

logger = logging.getLogger("tup-matching")


class LocalStorageProvider(StorageProvider):
    """
    Local filesystem storage provider.

    Buckets are subdirectories of the base path.

    Usage:
        provider = LocalStorageProvider(base_path="data/storage", url_prefix="http://localhost:8000/files")
        result = await provider.upload("pitch-decks", "exp_1/user_1/abc/deck.pdf", pdf_bytes)
    """

    def __init__(self, base_path: str | Path, url_prefix: str = "/files"):
        """
        Args:
            base_path: Base directory for storage
            url_prefix: Prefix for generated public URLs
        """
        self._base_path = Path(base_path)
        self._url_prefix = url_prefix.rstrip("/")
        self._base_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"[STORAGE:LOCAL] Provider initialized at {self._base_path}")

    @property
    def name(self) -> str:
        return "local"

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _get_full_path(self, bucket: str, key: str) -> Path:
        path = (self._base_path / bucket / self.normalize_key(key)).resolve()
        if not path.is_relative_to(self._base_path.resolve()):
            raise ValueError(f"Key escapes storage root: {key}")
        return path

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self._url_prefix}/{bucket}/{self.normalize_key(key)}"

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def upload(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UploadResult:
        """Write data to local storage."""
        try:
            key = self.normalize_key(key)
            full_path = self._get_full_path(bucket, key)
            await asyncio.to_thread(self._write, full_path, data)
        except (OSError, ValueError) as e:
            logger.error(f"[STORAGE:LOCAL] Upload failed {bucket}/{key}: {e}")
            return UploadResult(success=False, error=str(e))

        file_info = StorageFile(
            key=key,
            bucket=bucket,
            name=full_path.name,
            size=len(data),
            content_type=content_type or self.get_content_type(key),
            created_at=datetime.now(),
            metadata=metadata or {},
            url=self.get_public_url(bucket, key),
        )
        logger.info(f"[STORAGE:LOCAL] Uploaded {bucket}/{key} ({file_info.size} bytes)")
        return UploadResult(success=True, file=file_info)
