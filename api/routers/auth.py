"""
Authentication probe endpoints.

Echo the verified AuthContext so clients (and operators) can check that
token verification and access resolution work end to end.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.dependencies import require_experience, require_experience_admin
from api.exceptions import error_response, success_response
from models.auth import AuthContext
from models.errors import Result

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _probe_payload(message: str, ctx: AuthContext) -> dict:
    return {
        "message": message,
        "user": {
            "userId": ctx.user_id,
            "accessLevel": ctx.access_level.value,
            "hasAccess": ctx.has_access,
        },
        "experienceId": ctx.experience_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/test")
async def auth_test(auth: Result[AuthContext] = Depends(require_experience)):
    """GET /api/auth/test?experienceId=... - any member with access."""
    if not auth.success:
        return error_response(auth.error)
    return success_response(_probe_payload("Authentication successful", auth.value))


@router.post("/test")
async def admin_auth_test(auth: Result[AuthContext] = Depends(require_experience_admin)):
    """POST /api/auth/test?experienceId=... - admins only."""
    if not auth.success:
        return error_response(auth.error)
    return success_response(_probe_payload("Admin authentication successful", auth.value))
