"""
Trusted Header Middleware.

Runs on every request:
1. Strips the reserved principal headers (x-user-id, x-access-level,
   x-has-access, x-experience-id) so a client can never supply them.
2. On page paths (/experiences/{experienceId}/...) and non-public API paths
   (/api/...) runs the auth gate before the route is reached. On success the
   reserved headers are set from the verified context and the context is
   placed on request.state.auth_context. Failures render an HTML error page
   for pages and the JSON envelope for the API.

API paths take experienceId from the query string, or from the JSON body
for JSON requests. Other bodies (multipart uploads) are never read here.
"""

import re

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

import config
from api.exceptions import error_response
from api.pages import render_error_page
from contracts.trusted_headers import strip_trusted_headers, with_trusted_headers
from core.auth import get_auth_gate
from models.errors import ErrorKind, ServiceError

logger = config.get_logger("tup-matching")

PAGE_PATH = re.compile(r"^/experiences/([^/]+)(?:/.*)?$")
API_PREFIX = "/api/"

MSG_QUERY_EXPERIENCE_REQUIRED = "experienceId query parameter is required"
MSG_BODY_EXPERIENCE_REQUIRED = "experienceId is required"

DEFAULT_EXEMPT_PATHS = {"/", "/health", "/ready", "/favicon.ico"}
DEFAULT_EXEMPT_PREFIXES = ["/static/", "/assets/", "/files/", "/api/webhooks/"]


def _is_json(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


async def api_experience_id(request: Request) -> tuple[str | None, str]:
    """
    experienceId for an API request.

    Returns:
        (experience id or None, message to use when it is missing)
    """
    if not _is_json(request):
        return request.query_params.get("experienceId"), MSG_QUERY_EXPERIENCE_REQUIRED

    try:
        body = await request.json()
    except ValueError:
        body = None
    experience_id = body.get("experienceId") if isinstance(body, dict) else None
    if not isinstance(experience_id, str):
        experience_id = request.query_params.get("experienceId")
    return experience_id, MSG_BODY_EXPERIENCE_REQUIRED


class TrustedHeaderMiddleware(BaseHTTPMiddleware):
    """
    Strip reserved headers everywhere; gate and inject on pages and the API.

    Usage:
        app.add_middleware(TrustedHeaderMiddleware, exempt_prefixes=["/static/"])
    """

    def __init__(self, app, exempt_paths: set[str] | None = None, exempt_prefixes: list[str] | None = None):
        """
        Args:
            app: ASGI application
            exempt_paths: Paths that are never gated (exact match)
            exempt_prefixes: Path prefixes that are never gated
        """
        super().__init__(app)
        self.exempt_paths = exempt_paths if exempt_paths is not None else DEFAULT_EXEMPT_PATHS
        self.exempt_prefixes = exempt_prefixes if exempt_prefixes is not None else DEFAULT_EXEMPT_PREFIXES

    def _is_exempt(self, path: str) -> bool:
        if path in self.exempt_paths:
            return True
        return any(path.startswith(prefix) for prefix in self.exempt_prefixes)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path

        kept, stripped = strip_trusted_headers(request.scope["headers"])
        if stripped:
            logger.warning(f"[SECURITY] Stripped client-supplied reserved headers {stripped} on {path}")
            request.scope["headers"] = kept

        if self._is_exempt(path) or request.method == "OPTIONS":
            return await call_next(request)

        match = PAGE_PATH.match(path)
        if match:
            return await self._gate_page(request, call_next, kept, match.group(1))
        if path.startswith(API_PREFIX):
            return await self._gate_api(request, call_next, kept)
        return await call_next(request)

    async def _gate_page(self, request: Request, call_next, kept, experience_id: str) -> Response:
        result = await get_auth_gate().authorize(Headers(raw=kept), experience_id)
        if not result.success:
            logger.info(f"[AUTH] Page {request.url.path} rejected ({result.error.status})")
            return render_error_page(result.error.status)

        request.scope["headers"] = with_trusted_headers(kept, result.value)
        request.state.auth_context = result.value
        return await call_next(request)

    async def _gate_api(self, request: Request, call_next, kept) -> Response:
        experience_id, missing_message = await api_experience_id(request)
        if not experience_id or not experience_id.strip():
            return error_response(ServiceError(ErrorKind.INVALID_PAYLOAD, missing_message))

        result = await get_auth_gate().authorize(Headers(raw=kept), experience_id.strip())
        if not result.success:
            logger.info(f"[AUTH] {request.method} {request.url.path} rejected ({result.error.status})")
            return error_response(result.error)

        request.scope["headers"] = with_trusted_headers(kept, result.value)
        request.state.auth_context = result.value
        return await call_next(request)
