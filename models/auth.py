"""
Authentication Models.

Principal, access decisions and the per-request auth context.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class AccessLevel(str, Enum):
    """Access level the host platform grants on an experience or company."""
    ADMIN = "admin"
    CUSTOMER = "customer"
    NO_ACCESS = "no_access"

    @classmethod
    def parse(cls, value: Any) -> "AccessLevel":
        """Parse a remote access level, treating anything unknown as no access."""
        try:
            return cls(value)
        except ValueError:
            return cls.NO_ACCESS


@dataclass(frozen=True)
class Principal:
    """The authenticated caller. Only the identity verifier creates these."""
    user_id: str


@dataclass(frozen=True)
class AccessDecision:
    """Host platform verdict for a (user, experience) pair."""
    has_access: bool
    access_level: AccessLevel

    def __post_init__(self):
        if self.access_level == AccessLevel.NO_ACCESS and self.has_access:
            raise ValueError("no_access decisions cannot grant access")

    @classmethod
    def from_remote(cls, has_access: Any, access_level: Any) -> "AccessDecision":
        """Build a decision from a host reply, normalizing contradictory values."""
        level = AccessLevel.parse(access_level)
        granted = bool(has_access) and level != AccessLevel.NO_ACCESS
        return cls(has_access=granted, access_level=level)

    @classmethod
    def denied(cls) -> "AccessDecision":
        return cls(has_access=False, access_level=AccessLevel.NO_ACCESS)


@dataclass(frozen=True)
class AuthContext:
    """
    Verified principal plus its access decision for one experience.

    Lives for a single request and is never persisted.
    """
    user_id: str
    experience_id: str
    has_access: bool
    access_level: AccessLevel

    def __post_init__(self):
        if self.access_level == AccessLevel.NO_ACCESS and self.has_access:
            raise ValueError("no_access contexts cannot grant access")

    @classmethod
    def build(
        cls,
        principal: Principal,
        experience_id: str,
        decision: AccessDecision,
    ) -> "AuthContext":
        return cls(
            user_id=principal.user_id,
            experience_id=experience_id,
            has_access=decision.has_access,
            access_level=decision.access_level,
        )

    @property
    def is_admin(self) -> bool:
        return self.has_access and self.access_level == AccessLevel.ADMIN

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "experienceId": self.experience_id,
            "hasAccess": self.has_access,
            "accessLevel": self.access_level.value,
        }
