"""
Health check endpoints.
"""

import asyncio
import logging

from fastapi import APIRouter

from config import settings
from db import db
from integrations.storage import get_storage_client

logger = logging.getLogger("tup-matching")

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """
    Liveness check.

    Returns service status and basic info without touching dependencies.
    """
    return {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "environment": settings.ENVIRONMENT,
    }


@router.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": settings.SERVICE_NAME,
        "version": "1.0.0",
        "description": "Founder/investor matching: authorization, profiles and pitch-deck uploads",
        "docs": "/docs" if not settings.is_production else None,
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check for container orchestration.

    Verifies the database answers a lookup and the storage client can be built.
    """
    checks = {
        "database": False,
        "storage": False,
    }

    try:
        await asyncio.to_thread(db.get_profile, "__readiness__", "__readiness__")
        checks["database"] = True
    except Exception as e:
        logger.warning(f"[HEALTH] Database not ready: {e}")

    try:
        checks["storage"] = get_storage_client() is not None
    except Exception as e:
        logger.warning(f"[HEALTH] Storage not ready: {e}")

    return {
        "ready": all(checks.values()),
        "checks": checks,
    }
