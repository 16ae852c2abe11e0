"""
FastAPI Dependencies for the API routes.

TrustedHeaderMiddleware gates every non-public /api/ path before the route
runs and leaves the verified context on request.state.auth_context. These
dependencies hand that context to the route as a Result so failures render
in the standard envelope:

    @router.get("/api/profile/check")
    async def check(auth: Result[AuthContext] = Depends(require_experience)):
        if not auth.success:
            return error_response(auth.error)
        ...
"""

import logging

from fastapi import Request

from core.auth import MSG_UNAUTHENTICATED, AuthGate
from models.auth import AuthContext
from models.errors import ErrorKind, Result

logger = logging.getLogger("tup-matching")


def gated_context(request: Request) -> Result[AuthContext]:
    """The context verified by the middleware for this request."""
    context = getattr(request.state, "auth_context", None)
    if context is None:
        # Only reachable on a path the middleware does not gate
        logger.warning(f"[AUTH] No verified context on {request.method} {request.url.path}")
        return Result.fail(ErrorKind.UNAUTHENTICATED, MSG_UNAUTHENTICATED)
    return Result.ok(context)


async def require_experience(request: Request) -> Result[AuthContext]:
    """Any member with access to the experience."""
    return gated_context(request)


async def require_experience_admin(request: Request) -> Result[AuthContext]:
    """Admins of the experience only."""
    result = gated_context(request)
    if not result.success:
        return result
    return AuthGate.require_admin(result.value)
