"""
Upload Models.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UploadedArtifact:
    """A pitch deck stored in the blob store, addressed by its public URL."""
    url: str
    filename: str
    size: int
    content_type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "filename": self.filename,
            "size": self.size,
            "type": self.content_type,
        }
