"""
Host platform integration (token verification and access checks).
"""

from .client import (
    HostAuthError,
    HostForbiddenError,
    HostPlatformClient,
    HostPlatformError,
    HostUnavailableError,
    close_host_client,
    get_host_client,
    set_host_client,
)

__all__ = [
    "HostAuthError",
    "HostForbiddenError",
    "HostPlatformClient",
    "HostPlatformError",
    "HostUnavailableError",
    "close_host_client",
    "get_host_client",
    "set_host_client",
]
