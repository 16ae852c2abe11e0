"""
Abstract base class for storage providers.

Each provider implements their own storage-specific operations.
"""

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class StorageFile:
    """Platform-agnostic stored file representation."""
    key: str  # Full path/key in storage
    bucket: str  # Bucket/container name
    name: str  # File name only
    size: int  # Size in bytes
    content_type: str  # MIME type
    created_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    url: Optional[str] = None  # Public URL

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "bucket": self.bucket,
            "name": self.name,
            "size": self.size,
            "content_type": self.content_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "metadata": self.metadata,
            "url": self.url,
        }


@dataclass
class UploadResult:
    """Result from upload operations."""
    success: bool
    file: Optional[StorageFile] = None
    error: Optional[str] = None


class StorageProvider(ABC):
    """
    Abstract base class for storage providers.

    Each provider (Local, Supabase Storage) implements this interface with
    their own storage-specific operations. Providers report failures through
    UploadResult instead of raising.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'local', 'supabase')."""
        pass

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UploadResult:
        """
        Upload a file to storage.

        Args:
            bucket: Target bucket/container name
            key: File key/path within the bucket
            data: File contents
            content_type: MIME type (guessed from the key if not provided)
            metadata: Additional file metadata

        Returns:
            UploadResult with file info (including public URL) if successful
        """
        pass

    @abstractmethod
    def get_public_url(self, bucket: str, key: str) -> str:
        """Public URL for a stored object, as returned in UploadResult."""
        pass

    def get_content_type(self, filename: str) -> str:
        """Determine MIME type from filename."""
        content_type, _ = mimetypes.guess_type(filename)
        return content_type or "application/octet-stream"

    def normalize_key(self, key: str) -> str:
        """
        Normalize a storage key to consistent format.

        Converts backslashes and removes leading slashes.
        """
        key = key.replace("\\", "/")
        return key.lstrip("/")
