"""
Service Models.

Exports the models shared by the API, core and persistence layers.
"""

# Errors / Results
from .errors import (
    DEFAULT_STATUS,
    ErrorKind,
    Result,
    ServiceError,
)

# Auth Models
from .auth import (
    AccessDecision,
    AccessLevel,
    AuthContext,
    Principal,
)

# Profile Models
from .profile import (
    ROLE_SCHEMAS,
    AmountRange,
    FounderData,
    FounderDraft,
    InvestorData,
    InvestorDraft,
    ProfileCreateRequest,
    ProfileInput,
    ProfilePatch,
    ProfileRecord,
    ProfileStatus,
    ProfileUpdateRequest,
    Role,
    RoleSchema,
    format_validation_errors,
)

# Upload Models
from .upload import UploadedArtifact

__all__ = [
    # Errors
    "DEFAULT_STATUS",
    "ErrorKind",
    "Result",
    "ServiceError",
    # Auth
    "AccessDecision",
    "AccessLevel",
    "AuthContext",
    "Principal",
    # Profile
    "ROLE_SCHEMAS",
    "AmountRange",
    "FounderData",
    "FounderDraft",
    "InvestorData",
    "InvestorDraft",
    "ProfileCreateRequest",
    "ProfileInput",
    "ProfilePatch",
    "ProfileRecord",
    "ProfileStatus",
    "ProfileUpdateRequest",
    "Role",
    "RoleSchema",
    "format_validation_errors",
    # Upload
    "UploadedArtifact",
]
