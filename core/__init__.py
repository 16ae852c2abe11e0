"""
Core Business Logic.

- auth: identity verification, access resolution and the auth gate
- profiles: profile lifecycle
- uploads: pitch-deck upload broker
"""

from core.auth import AccessResolver, AuthGate, IdentityVerifier, get_auth_gate, set_auth_gate
from core.profiles import ProfileService, get_profile_service
from core.uploads import UploadBroker, get_upload_broker

__all__ = [
    "AccessResolver",
    "AuthGate",
    "IdentityVerifier",
    "ProfileService",
    "UploadBroker",
    "get_auth_gate",
    "get_profile_service",
    "get_upload_broker",
    "set_auth_gate",
]
