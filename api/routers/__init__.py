"""
API Routers.
"""

from .health import router as health_router
from .auth import router as auth_router
from .profile import router as profile_router
from .upload import router as upload_router
from .experiences import router as experiences_router

__all__ = [
    "health_router",
    "auth_router",
    "profile_router",
    "upload_router",
    "experiences_router",
]
