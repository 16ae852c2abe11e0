"""
API Middleware Package.

- SecurityHeadersMiddleware: request id and security headers
- RequestLoggingMiddleware: one log line per request
- TrustedHeaderMiddleware: reserved header stripping and the auth gate for pages and the API
"""

from api.middleware.security import RequestLoggingMiddleware, SecurityHeadersMiddleware
from api.middleware.trusted_headers import TrustedHeaderMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "TrustedHeaderMiddleware",
]
