"""
Storage Integration Layer.

Abstracted access to the blob store that holds pitch decks.

Supported Providers:
- Local (LocalStorageProvider): Local filesystem storage (development, tests)
- Supabase (SupabaseStorageProvider): Supabase Storage (production)

Usage:
    from integrations.storage import get_storage_client

    storage = get_storage_client()
    result = await storage.upload("pitch-decks", key, pdf_bytes, "application/pdf")
    if result.success:
        print(result.file.url)

Configuration:
    STORAGE_PROVIDER: "supabase" (default) or "local"
    BLOB_STORE_URL / BLOB_STORE_CREDENTIALS: Supabase project URL and service key
    LOCAL_STORAGE_PATH: base directory for the local provider
"""

from integrations.storage.base import StorageFile, StorageProvider, UploadResult
from integrations.storage.client import (
    StorageClient,
    get_storage_client,
    reset_storage_client,
    set_storage_client,
)

__all__ = [
    "StorageClient",
    "StorageFile",
    "StorageProvider",
    "UploadResult",
    "get_storage_client",
    "reset_storage_client",
    "set_storage_client",
]
