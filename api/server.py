"""
FastAPI Server - Matching Service Entry Point.

Authorization, profile lifecycle and pitch-deck uploads for the
founder/investor matching app embedded in the host platform.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import config
from api.exceptions import setup_exception_handlers
from api.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    TrustedHeaderMiddleware,
)
from api.routers import (
    auth_router,
    experiences_router,
    health_router,
    profile_router,
    upload_router,
)
from db import close_backend
from integrations.host_platform import close_host_client
from integrations.storage import reset_storage_client

logger = config.get_logger("tup-matching")


# =============================================================================
# LIFESPAN
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown events."""
    logger.info(f"[STARTUP] Matching service starting (env={config.settings.ENVIRONMENT})")
    config.settings.log_config()
    yield
    logger.info("[SHUTDOWN] Matching service shutting down")
    await close_host_client()
    close_backend()
    reset_storage_client()


# =============================================================================
# APPLICATION
# =============================================================================


app = FastAPI(
    title="T.UP Matching Service",
    description="Founder/investor matching: host-platform auth, profiles and pitch-deck uploads",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not config.settings.is_production else None,
    redoc_url="/redoc" if not config.settings.is_production else None,
)

setup_exception_handlers(app)

# Middleware runs outermost-last-added: CORS -> security headers -> logging -> trusted headers

# Strips reserved headers on every request and gates /experiences/* pages
app.add_middleware(TrustedHeaderMiddleware)
logger.info("[SECURITY] TrustedHeaderMiddleware enabled")

app.add_middleware(RequestLoggingMiddleware)
logger.info("[SECURITY] RequestLoggingMiddleware enabled")

# Adds X-Request-ID, X-Response-Time and security headers
app.add_middleware(SecurityHeadersMiddleware)
logger.info("[SECURITY] SecurityHeadersMiddleware enabled")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Request-ID",
        config.settings.USER_TOKEN_HEADER,
    ],
)
logger.info(f"[CORS] Allowed origins: {config.settings.allowed_origins}")


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(upload_router)
app.include_router(experiences_router)

if config.settings.STORAGE_PROVIDER == "local":
    # Local provider URLs point here
    Path(config.settings.LOCAL_STORAGE_PATH).mkdir(parents=True, exist_ok=True)
    app.mount(
        "/files",
        StaticFiles(directory=config.settings.LOCAL_STORAGE_PATH),
        name="files",
    )

logger.info("[ROUTERS] All routers registered")
