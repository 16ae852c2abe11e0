"""
Unified Storage Client.

Provides a single interface to the configured storage provider.
"""

import logging
from typing import Any, Optional

from integrations.storage.base import StorageProvider, UploadResult

logger = logging.getLogger("tup-matching")

# Global storage client instance
_storage_client: Optional["StorageClient"] = None


class StorageClient:
    """
    Unified storage client that abstracts provider-specific implementations.

    Usage:
        from integrations.storage import get_storage_client

        storage = get_storage_client()
        result = await storage.upload("pitch-decks", "exp_1/user_1/abc/deck.pdf", pdf_bytes)
        if result.success:
            print(f"Uploaded: {result.file.url}")
    """

    def __init__(self, provider: StorageProvider):
        """
        Initialize the storage client with a provider.

        Args:
            provider: The storage provider implementation to use
        """
        self._provider = provider
        logger.info(f"[STORAGE] Client initialized with provider: {provider.name}")

    @classmethod
    def from_config(cls, provider_name: Optional[str] = None) -> "StorageClient":
        """
        Create a StorageClient from settings.

        Args:
            provider_name: "local" or "supabase"; defaults to STORAGE_PROVIDER
        """
        from config import settings

        provider_name = provider_name or settings.STORAGE_PROVIDER

        if provider_name == "supabase":
            from integrations.storage.providers.supabase import SupabaseStorageProvider

            if not settings.blob_store_url:
                raise RuntimeError("BLOB_STORE_URL must be set for Supabase storage")
            provider = SupabaseStorageProvider(
                supabase_url=settings.blob_store_url,
                supabase_key=settings.BLOB_STORE_CREDENTIALS,
            )
        elif provider_name == "local":
            from integrations.storage.providers.local import LocalStorageProvider

            provider = LocalStorageProvider(
                base_path=settings.LOCAL_STORAGE_PATH,
                url_prefix=f"{settings.PUBLIC_BASE_URL.rstrip('/')}/files",
            )
        else:
            raise ValueError(f"Unknown storage provider: {provider_name}")

        return cls(provider)

    @property
    def provider(self) -> StorageProvider:
        """Access the underlying provider."""
        return self._provider

    @property
    def provider_name(self) -> str:
        """Get the name of the current provider."""
        return self._provider.name

    async def upload(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UploadResult:
        """Upload a file to storage. See StorageProvider.upload."""
        return await self._provider.upload(bucket, key, data, content_type, metadata)


# =============================================================================
# MODULE-LEVEL FUNCTIONS
# =============================================================================


def get_storage_client() -> StorageClient:
    """
    Get the global storage client instance.

    Creates one if it doesn't exist.
    """
    global _storage_client
    if _storage_client is None:
        _storage_client = StorageClient.from_config()
    return _storage_client


def set_storage_client(client: StorageClient) -> None:
    """
    Set the global storage client instance.

    Args:
        client: StorageClient to use globally
    """
    global _storage_client
    _storage_client = client
    logger.info(f"[STORAGE] Global client set to: {client.provider_name}")


def reset_storage_client() -> None:
    """Reset the global storage client (mainly for testing)."""
    global _storage_client
    _storage_client = None
