"""
Header contracts shared by the auth gate and its downstream consumers.
"""

from .trusted_headers import (
    HEADER_ACCESS_LEVEL,
    HEADER_EXPERIENCE_ID,
    HEADER_HAS_ACCESS,
    HEADER_USER_ID,
    RESERVED_HEADER_NAMES,
    TRUSTED_HEADERS,
    build_headers,
    read_trusted_context,
    strip_trusted_headers,
    with_trusted_headers,
)

__all__ = [
    "HEADER_ACCESS_LEVEL",
    "HEADER_EXPERIENCE_ID",
    "HEADER_HAS_ACCESS",
    "HEADER_USER_ID",
    "RESERVED_HEADER_NAMES",
    "TRUSTED_HEADERS",
    "build_headers",
    "read_trusted_context",
    "strip_trusted_headers",
    "with_trusted_headers",
]
