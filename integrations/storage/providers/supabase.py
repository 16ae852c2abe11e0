"""
Supabase Storage provider.

Implements StorageProvider on Supabase Storage (S3-compatible). The supabase
client is synchronous, so every call runs in a worker thread.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from integrations.storage.base import StorageFile, StorageProvider, UploadResult

logger = logging.getLogger("tup-matching")


class SupabaseStorageProvider(StorageProvider):
    """
    Supabase Storage provider.

    Usage:
        provider = SupabaseStorageProvider(
            supabase_url="https://xxx.supabase.co",
            supabase_key="service_role_key",
        )
        result = await provider.upload("pitch-decks", "exp_1/user_1/abc/deck.pdf", pdf_bytes)
    """

    def __init__(self, supabase_url: str, supabase_key: str, timeout: float = 60):
        """
        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase service role key
            timeout: Storage client timeout in seconds
        """
        self._url = supabase_url.rstrip("/")
        self._key = supabase_key
        self._timeout = timeout
        self._client = None

        logger.info(f"[STORAGE:SUPABASE] Provider configured for {self._url}")

    def _get_client(self):
        """Get or create Supabase client."""
        if self._client is None:
            from supabase import ClientOptions, create_client

            options = ClientOptions(storage_client_timeout=int(self._timeout))
            self._client = create_client(self._url, self._key, options=options)
        return self._client

    @property
    def name(self) -> str:
        return "supabase"

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self._url}/storage/v1/object/public/{bucket}/{self.normalize_key(key)}"

    async def upload(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UploadResult:
        """Upload data to Supabase Storage."""
        key = self.normalize_key(key)
        content_type = content_type or self.get_content_type(key)

        try:
            client = self._get_client()
            await asyncio.to_thread(
                client.storage.from_(bucket).upload,
                path=key,
                file=data,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            logger.error(f"[STORAGE:SUPABASE] Upload failed {bucket}/{key}: {e}")
            return UploadResult(success=False, error=str(e))

        file_info = StorageFile(
            key=key,
            bucket=bucket,
            name=key.rsplit("/", 1)[-1],
            size=len(data),
            content_type=content_type,
            created_at=datetime.now(),
            metadata=metadata or {},
            url=self.get_public_url(bucket, key),
        )
        logger.info(f"[STORAGE:SUPABASE] Uploaded {bucket}/{key} ({file_info.size} bytes)")
        return UploadResult(success=True, file=file_info)
