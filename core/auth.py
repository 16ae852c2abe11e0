"""
Authentication and Authorization.

Three layers, leaves first:

    IdentityVerifier  - request headers -> Principal
    AccessResolver    - (user_id, experience_id) -> AccessDecision
    AuthGate          - verifier + resolver + access/admin predicates -> AuthContext

All three return Result objects and never raise for expected failures. The
host platform client is looked up lazily so tests can swap it with
integrations.host_platform.set_host_client().
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Optional

from config import settings
from integrations.host_platform import (
    HostAuthError,
    HostForbiddenError,
    HostPlatformClient,
    HostUnavailableError,
    get_host_client,
)
from models.auth import AccessDecision, AuthContext, Principal
from models.errors import ErrorKind, Result

logger = logging.getLogger("tup-matching")

MSG_UNAUTHENTICATED = "Invalid or missing authentication token"
MSG_VERIFIER_UNAVAILABLE = "Authentication service unavailable. Please try again."
MSG_RESOLVER_UNAVAILABLE = "Access service unavailable. Please try again."
MSG_ACCESS_DENIED = "Access denied to this experience"
MSG_ADMIN_REQUIRED = "Admin access required"
MSG_INTERNAL = "Internal server error"

# Global gate instance
_auth_gate: Optional["AuthGate"] = None


def _lookup(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        # Plain dicts are case-sensitive; starlette Headers are not
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                return candidate
    return value


class IdentityVerifier:
    """
    Verifies the host-issued user token carried on a request.

    Positive verifications are never cached; every request hits the host.
    """

    def __init__(
        self,
        host: HostPlatformClient | None = None,
        token_header: str | None = None,
        timeout: float | None = None,
    ):
        self._host = host
        self._token_header = token_header or settings.USER_TOKEN_HEADER
        self._timeout = timeout or settings.request_deadline_seconds

    @property
    def host(self) -> HostPlatformClient:
        return self._host or get_host_client()

    async def verify_token(self, headers: Mapping[str, str]) -> Result[Principal]:
        """
        Extract and verify the user token.

        Args:
            headers: Inbound request headers

        Returns:
            Result with the Principal, or Unauthenticated / VerifierUnavailable
        """
        token = (_lookup(headers, self._token_header) or "").strip()
        if not token:
            logger.debug("[AUTH] No user token on request")
            return Result.fail(ErrorKind.UNAUTHENTICATED, MSG_UNAUTHENTICATED)

        try:
            user_id = await asyncio.wait_for(
                self.host.verify_user_token(token),
                timeout=self._timeout,
            )
        except HostAuthError:
            logger.info("[AUTH] Token rejected by host platform")
            return Result.fail(ErrorKind.UNAUTHENTICATED, MSG_UNAUTHENTICATED)
        except asyncio.TimeoutError:
            logger.warning(f"[AUTH] Token verification timed out after {self._timeout}s")
            return Result.fail(ErrorKind.VERIFIER_UNAVAILABLE, MSG_VERIFIER_UNAVAILABLE)
        except HostUnavailableError as e:
            logger.warning(f"[AUTH] Token verification unavailable: {e}")
            return Result.fail(ErrorKind.VERIFIER_UNAVAILABLE, MSG_VERIFIER_UNAVAILABLE)

        return Result.ok(Principal(user_id=user_id))


class AccessResolver:
    """Asks the host platform what a user may do in an experience or company."""

    def __init__(self, host: HostPlatformClient | None = None, timeout: float | None = None):
        self._host = host
        self._timeout = timeout or settings.request_deadline_seconds

    @property
    def host(self) -> HostPlatformClient:
        return self._host or get_host_client()

    async def _resolve(self, call, label: str) -> Result[AccessDecision]:
        try:
            reply = await asyncio.wait_for(call, timeout=self._timeout)
        except HostForbiddenError:
            return Result.ok(AccessDecision.denied())
        except asyncio.TimeoutError:
            logger.warning(f"[AUTH] Access check for {label} timed out after {self._timeout}s")
            return Result.fail(ErrorKind.RESOLVER_UNAVAILABLE, MSG_RESOLVER_UNAVAILABLE)
        except HostUnavailableError as e:
            logger.warning(f"[AUTH] Access check for {label} unavailable: {e}")
            return Result.fail(ErrorKind.RESOLVER_UNAVAILABLE, MSG_RESOLVER_UNAVAILABLE)

        return Result.ok(AccessDecision.from_remote(reply.get("has_access"), reply.get("access_level")))

    async def resolve_access(self, user_id: str, experience_id: str) -> Result[AccessDecision]:
        """
        Resolve a user's access to an experience.

        A definitive 'no' from the host is a successful decision with
        has_access=False, not an error.
        """
        return await self._resolve(
            self.host.check_experience_access(user_id, experience_id),
            f"experience {experience_id}",
        )

    async def resolve_company_access(self, user_id: str, company_id: str) -> Result[AccessDecision]:
        """Resolve a user's access to a company (dashboard views)."""
        return await self._resolve(
            self.host.check_company_access(user_id, company_id),
            f"company {company_id}",
        )


class AuthGate:
    """
    Composes verification, access resolution and the access predicates.

    Steps run strictly in order (verify -> resolve -> require access ->
    require admin) and are never retried.
    """

    def __init__(
        self,
        verifier: IdentityVerifier | None = None,
        resolver: AccessResolver | None = None,
    ):
        self.verifier = verifier or IdentityVerifier()
        self.resolver = resolver or AccessResolver()

    async def authorize(
        self,
        headers: Mapping[str, str],
        experience_id: str,
        require_admin: bool = False,
    ) -> Result[AuthContext]:
        """
        Authorize a request against an experience.

        Args:
            headers: Inbound request headers (reserved headers already stripped)
            experience_id: Experience the request targets
            require_admin: Also demand admin access

        Returns:
            Result with the AuthContext or the failure to send back
        """
        try:
            return await self._authorize(headers, experience_id, require_admin)
        except Exception as e:
            logger.error(f"[AUTH] Unexpected gate failure for experience {experience_id}: {e}", exc_info=True)
            return Result.fail(ErrorKind.INTERNAL, MSG_INTERNAL)

    async def _authorize(
        self,
        headers: Mapping[str, str],
        experience_id: str,
        require_admin: bool,
    ) -> Result[AuthContext]:
        verified = await self.verifier.verify_token(headers)
        if not verified.success:
            return Result.from_error(verified.error)
        principal = verified.value

        resolved = await self.resolver.resolve_access(principal.user_id, experience_id)
        if not resolved.success:
            return Result.from_error(resolved.error)

        context = AuthContext.build(principal, experience_id, resolved.value)

        if not context.has_access:
            logger.info(f"[AUTH] User {context.user_id} denied on experience {experience_id}")
            return Result.fail(ErrorKind.FORBIDDEN, MSG_ACCESS_DENIED)

        if require_admin:
            return self.require_admin(context)

        logger.debug(
            f"[AUTH] User {context.user_id} authorized on {experience_id} "
            f"({context.access_level.value})"
        )
        return Result.ok(context)

    @staticmethod
    def require_admin(context: AuthContext) -> Result[AuthContext]:
        """Admin predicate on an already authorized context."""
        if not context.is_admin:
            logger.info(f"[AUTH] User {context.user_id} is not admin on experience {context.experience_id}")
            return Result.fail(ErrorKind.FORBIDDEN, MSG_ADMIN_REQUIRED)
        return Result.ok(context)


def get_auth_gate() -> AuthGate:
    """Get the global auth gate, creating it on first use."""
    global _auth_gate
    if _auth_gate is None:
        _auth_gate = AuthGate()
    return _auth_gate


def set_auth_gate(gate: AuthGate | None) -> None:
    """Replace the global auth gate (None resets to a fresh default on next use)."""
    global _auth_gate
    _auth_gate = gate
