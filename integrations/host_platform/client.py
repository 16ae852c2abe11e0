"""
Host Platform Client.

Async HTTP client for the host platform that issues user tokens and decides
who may enter an experience. One pooled httpx.AsyncClient is shared by the
whole process.

Host contract (all calls carry `Authorization: Bearer <HOST_PLATFORM_API_KEY>`):
    POST /auth/verify-token                 {"token": ...}  -> {"user_id": ...}
    GET  /access/experiences/{id}?user_id=  -> {"has_access": bool, "access_level": str}
    GET  /access/companies/{id}?user_id=    -> same shape

Usage:
    from integrations.host_platform import get_host_client

    host = get_host_client()
    user_id = await host.verify_user_token(token)
    access = await host.check_experience_access(user_id, "exp_123")
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger("tup-matching")

# Global host client instance
_host_client: Optional["HostPlatformClient"] = None


# =============================================================================
# ERRORS
# =============================================================================


class HostPlatformError(Exception):
    """Base class for host platform failures."""
    pass


class HostAuthError(HostPlatformError):
    """The host rejected the user token (invalid, expired or malformed)."""
    pass


class HostForbiddenError(HostPlatformError):
    """The host answered a definitive 'no access'."""
    pass


class HostUnavailableError(HostPlatformError):
    """Transport failure, timeout or unusable reply from the host."""
    pass


# =============================================================================
# CLIENT
# =============================================================================


class HostPlatformClient:
    """
    Thin async client for the host platform's identity and access APIs.

    Raises typed HostPlatformError subclasses; callers map them to results.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            api_url: Base URL of the host platform API
            api_key: Server credential for the host platform
            timeout: Per-call timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls) -> "HostPlatformClient":
        """Create a client from process settings."""
        from config import settings

        return cls(
            api_url=settings.HOST_PLATFORM_API_URL,
            api_key=settings.HOST_PLATFORM_API_KEY,
            timeout=settings.request_deadline_seconds,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._get_client().request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"[HOST] Timeout on {method} {path}")
            raise HostUnavailableError("Host platform timed out") from e
        except httpx.TransportError as e:
            logger.warning(f"[HOST] Transport error on {method} {path}: {e}")
            raise HostUnavailableError("Host platform unreachable") from e

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise HostUnavailableError("Host platform returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise HostUnavailableError("Host platform returned an unexpected payload")
        return payload

    # =========================================================================
    # IDENTITY
    # =========================================================================

    async def verify_user_token(self, token: str) -> str:
        """
        Verify a user token with the host platform.

        Returns:
            The user id the token was issued to

        Raises:
            HostAuthError: token invalid, expired or malformed
            HostUnavailableError: host unreachable or reply unusable
        """
        response = await self._request("POST", "/auth/verify-token", json={"token": token})

        if response.status_code in (400, 401, 403, 422):
            logger.debug(f"[HOST] Token rejected ({response.status_code})")
            raise HostAuthError("Invalid token")

        if response.status_code != 200:
            logger.warning(f"[HOST] verify-token returned {response.status_code}")
            raise HostUnavailableError(f"Host platform returned {response.status_code}")

        user_id = self._json(response).get("user_id")
        if not user_id or not isinstance(user_id, str):
            raise HostUnavailableError("Host platform reply has no user id")

        return user_id

    # =========================================================================
    # ACCESS
    # =========================================================================

    async def _check_access(self, path: str, user_id: str) -> dict[str, Any]:
        response = await self._request("GET", path, params={"user_id": user_id})

        if response.status_code in (403, 404):
            raise HostForbiddenError("No access")

        if response.status_code != 200:
            # 401 here means our own API key was refused
            logger.warning(f"[HOST] {path} returned {response.status_code}")
            raise HostUnavailableError(f"Host platform returned {response.status_code}")

        payload = self._json(response)
        return {
            "has_access": bool(payload.get("has_access", False)),
            "access_level": payload.get("access_level", "no_access"),
        }

    async def check_experience_access(self, user_id: str, experience_id: str) -> dict[str, Any]:
        """
        Ask whether a user can enter an experience.

        Returns:
            {"has_access": bool, "access_level": str}

        Raises:
            HostForbiddenError: definitive no
            HostUnavailableError: host unreachable or reply unusable
        """
        return await self._check_access(f"/access/experiences/{experience_id}", user_id)

    async def check_company_access(self, user_id: str, company_id: str) -> dict[str, Any]:
        """Ask whether a user can administer a company. Same shape as experiences."""
        return await self._check_access(f"/access/companies/{company_id}", user_id)


# =============================================================================
# MODULE-LEVEL FUNCTIONS
# =============================================================================


def get_host_client() -> HostPlatformClient:
    """
    Get the global host platform client.

    Creates one if it doesn't exist.
    """
    global _host_client
    if _host_client is None:
        _host_client = HostPlatformClient.from_config()
    return _host_client


def set_host_client(client: HostPlatformClient) -> None:
    """Set the global host platform client (tests install fakes here)."""
    global _host_client
    _host_client = client


async def close_host_client() -> None:
    """Close and drop the global client (called on shutdown)."""
    global _host_client
    if _host_client is not None:
        await _host_client.aclose()
    _host_client = None
