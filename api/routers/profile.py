"""
Profile API endpoints.

Reads are open to any member of the experience; writes are owner-only.
Profile fields are returned at the top level of `data`.
"""

from fastapi import APIRouter, Depends

from api.dependencies import require_experience
from api.exceptions import error_response, success_response
from core.profiles import get_profile_service
from models.auth import AuthContext
from models.errors import Result
from models.profile import ProfileCreateRequest, ProfileInput, ProfilePatch, ProfileUpdateRequest

router = APIRouter(prefix="/api/profile", tags=["profile"])


# /check must be registered before /{user_id}
@router.get("/check")
async def check_profile(auth: Result[AuthContext] = Depends(require_experience)):
    """
    Whether the caller has a profile in this experience.

    Returns:
        {hasProfile, isComplete, role}
    """
    if not auth.success:
        return error_response(auth.error)

    result = await get_profile_service().check(auth.value)
    if not result.success:
        return error_response(result.error)
    return success_response(result.value.to_dict())


@router.post("/create")
async def create_profile(body: ProfileCreateRequest, auth: Result[AuthContext] = Depends(require_experience)):
    """
    Create or replace the caller's profile.

    The experience comes from the body. Drafts (isComplete=false) may be
    partial; complete profiles must satisfy the full role schema.

    Returns:
        The stored profile plus a message
    """
    if not auth.success:
        return error_response(auth.error)

    profile = ProfileInput(
        user_id=body.user_id,
        role=body.role,
        data=body.data,
        is_complete=body.is_complete,
    )
    result = await get_profile_service().upsert(auth.value, profile)
    if not result.success:
        return error_response(result.error)

    return success_response({
        **result.value.to_response(),
        "message": "Profile created successfully!" if result.value.is_complete else "Profile saved as draft",
    })


@router.get("/{user_id}")
async def get_profile(user_id: str, auth: Result[AuthContext] = Depends(require_experience)):
    """Any member's profile in this experience."""
    if not auth.success:
        return error_response(auth.error)

    result = await get_profile_service().get(auth.value, user_id)
    if not result.success:
        return error_response(result.error)
    return success_response(result.value.to_response())


@router.patch("/{user_id}")
async def update_profile(
    user_id: str,
    body: ProfileUpdateRequest,
    auth: Result[AuthContext] = Depends(require_experience),
):
    """
    Partially update the caller's own profile.

    `data` keys are merged onto the stored data (null removes a key) and the
    result is re-validated against the stored role.
    """
    if not auth.success:
        return error_response(auth.error)

    patch = ProfilePatch(data=body.data, is_complete=body.is_complete)
    result = await get_profile_service().update(auth.value, user_id, patch)
    if not result.success:
        return error_response(result.error)

    return success_response({
        **result.value.to_response(),
        "message": "Profile updated successfully",
    })
