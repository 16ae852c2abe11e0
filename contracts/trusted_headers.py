"""
Trusted Header Contract

The auth gate PRODUCES these headers on the forwarded request after it has
verified the caller; page handlers and API routes CONSUME them. Clients must
never be able to supply them, so every inbound request has them stripped
before the gate runs.

Header Names:
    x-user-id:        verified user id
    x-access-level:   admin | customer | no_access
    x-has-access:     "true" | "false"
    x-experience-id:  experience the decision applies to

Values are percent-encoded (UTF-8) on the wire since user and experience ids
are opaque and may fall outside latin-1. Plain ASCII ids are unchanged.
Read them back with read_trusted_context.

Usage:
    from contracts.trusted_headers import strip_trusted_headers, read_trusted_context
"""

from collections.abc import Mapping
from urllib.parse import quote, unquote

from models.auth import AccessLevel, AuthContext


# =============================================================================
# HEADER NAME CONSTANTS
# =============================================================================
# Reserved: set only by the auth gate.
# =============================================================================

HEADER_USER_ID = "x-user-id"
HEADER_ACCESS_LEVEL = "x-access-level"
HEADER_HAS_ACCESS = "x-has-access"
HEADER_EXPERIENCE_ID = "x-experience-id"

TRUSTED_HEADERS = {
    "user_id": HEADER_USER_ID,
    "access_level": HEADER_ACCESS_LEVEL,
    "has_access": HEADER_HAS_ACCESS,
    "experience_id": HEADER_EXPERIENCE_ID,
}

RESERVED_HEADER_NAMES = frozenset(TRUSTED_HEADERS.values())
_RESERVED_RAW = frozenset(name.encode("latin-1") for name in RESERVED_HEADER_NAMES)


def build_headers(context: AuthContext) -> dict[str, str]:
    """Trusted header values (percent-encoded) for a verified auth context."""
    values = {
        HEADER_USER_ID: context.user_id,
        HEADER_ACCESS_LEVEL: context.access_level.value,
        HEADER_HAS_ACCESS: "true" if context.has_access else "false",
        HEADER_EXPERIENCE_ID: context.experience_id,
    }
    return {name: quote(value, safe="") for name, value in values.items()}


def strip_trusted_headers(
    raw_headers: list[tuple[bytes, bytes]],
) -> tuple[list[tuple[bytes, bytes]], list[str]]:
    """
    Remove reserved headers from an ASGI header list.

    Returns:
        (remaining headers, names of stripped headers)
    """
    kept = []
    stripped = []
    for name, value in raw_headers:
        if name.lower() in _RESERVED_RAW:
            stripped.append(name.decode("latin-1").lower())
            continue
        kept.append((name, value))
    return kept, stripped


def with_trusted_headers(
    raw_headers: list[tuple[bytes, bytes]],
    context: AuthContext,
) -> list[tuple[bytes, bytes]]:
    """ASGI header list with reserved headers replaced by the context's values."""
    kept, _ = strip_trusted_headers(raw_headers)
    for name, value in build_headers(context).items():
        kept.append((name.encode("latin-1"), value.encode("ascii")))
    return kept


def read_trusted_context(headers: Mapping[str, str]) -> AuthContext | None:
    """
    Rebuild the auth context from trusted headers.

    Args:
        headers: Request headers (case-insensitive mapping, e.g. starlette Headers)

    Returns:
        AuthContext if all trusted headers are present, None otherwise
    """
    normalized = {k.lower(): unquote(v) for k, v in headers.items()}

    user_id = normalized.get(HEADER_USER_ID)
    access_level = normalized.get(HEADER_ACCESS_LEVEL)
    experience_id = normalized.get(HEADER_EXPERIENCE_ID)
    if not user_id or not access_level or not experience_id:
        return None

    level = AccessLevel.parse(access_level)
    has_access = normalized.get(HEADER_HAS_ACCESS) == "true" and level != AccessLevel.NO_ACCESS

    return AuthContext(
        user_id=user_id,
        experience_id=experience_id,
        has_access=has_access,
        access_level=level,
    )
