"""
Pytest configuration and fixtures for testing.

This module provides:
- Test environment (set before any app module is imported)
- A fake host platform client with configurable tokens and access
- A per-test SQLite backend and local storage provider
- Test client for FastAPI
- Sample profile payloads
"""

import asyncio
import os
import tempfile
from collections.abc import Generator
from typing import Any

import pytest

_TEST_ROOT = tempfile.mkdtemp(prefix="tup-matching-tests-")

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["HOST_PLATFORM_API_KEY"] = "test-host-api-key"
os.environ["HOST_PLATFORM_API_URL"] = "https://host.test/api"
os.environ["BLOB_STORE_CREDENTIALS"] = "test-blob-credentials"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT}/default.db"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = f"{_TEST_ROOT}/storage"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

from fastapi.testclient import TestClient

from api.server import app
from config import settings
from core.auth import set_auth_gate
from db import set_backend
from db.backends.sqlite import SQLiteBackend
from integrations.host_platform import HostAuthError, HostForbiddenError, set_host_client
from integrations.storage import StorageClient, reset_storage_client, set_storage_client
from integrations.storage.providers.local import LocalStorageProvider
from models.auth import AccessLevel, AuthContext

EXPERIENCE_ID = "exp_alpha"
OTHER_EXPERIENCE_ID = "exp_beta"

FOUNDER = {"token": "tok-founder", "user_id": "user_founder"}
INVESTOR = {"token": "tok-investor", "user_id": "user_investor"}
ADMIN = {"token": "tok-admin", "user_id": "user_admin"}
OUTSIDER = {"token": "tok-outsider", "user_id": "user_outsider"}


# =============================================================================
# FAKE HOST PLATFORM
# =============================================================================


class FakeHostClient:
    """
    In-memory stand-in for HostPlatformClient.

    tokens: token -> user_id (anything else is rejected as invalid)
    access: (user_id, experience_id) -> (has_access, access_level);
            missing pairs answer a definitive 'no access'
    """

    def __init__(self):
        self.tokens: dict[str, str] = {}
        self.access: dict[tuple[str, str], tuple[bool, str]] = {}
        self.companies: dict[tuple[str, str], tuple[bool, str]] = {}
        self.verify_calls = 0
        self.access_calls = 0
        self.verify_error: Exception | None = None
        self.access_error: Exception | None = None
        self.verify_delay = 0.0

    def grant(self, user: dict[str, str], experience_id: str, level: str = "customer") -> None:
        self.tokens[user["token"]] = user["user_id"]
        self.access[(user["user_id"], experience_id)] = (level != "no_access", level)

    async def verify_user_token(self, token: str) -> str:
        self.verify_calls += 1
        if self.verify_delay:
            await asyncio.sleep(self.verify_delay)
        if self.verify_error is not None:
            raise self.verify_error
        if token not in self.tokens:
            raise HostAuthError("Invalid token")
        return self.tokens[token]

    async def check_experience_access(self, user_id: str, experience_id: str) -> dict[str, Any]:
        self.access_calls += 1
        if self.access_error is not None:
            raise self.access_error
        if (user_id, experience_id) not in self.access:
            raise HostForbiddenError("No access")
        has_access, level = self.access[(user_id, experience_id)]
        return {"has_access": has_access, "access_level": level}

    async def check_company_access(self, user_id: str, company_id: str) -> dict[str, Any]:
        if self.access_error is not None:
            raise self.access_error
        if (user_id, company_id) not in self.companies:
            raise HostForbiddenError("No access")
        has_access, level = self.companies[(user_id, company_id)]
        return {"has_access": has_access, "access_level": level}

    async def aclose(self) -> None:
        return None


# =============================================================================
# INFRASTRUCTURE FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def host() -> Generator[FakeHostClient, None, None]:
    """Fake host platform with a founder, an investor and an admin on EXPERIENCE_ID."""
    fake = FakeHostClient()
    fake.grant(FOUNDER, EXPERIENCE_ID)
    fake.grant(INVESTOR, EXPERIENCE_ID)
    fake.grant(ADMIN, EXPERIENCE_ID, level="admin")
    # Valid token, but no access anywhere
    fake.tokens[OUTSIDER["token"]] = OUTSIDER["user_id"]

    set_host_client(fake)
    set_auth_gate(None)
    yield fake
    set_auth_gate(None)


@pytest.fixture(autouse=True)
def backend(tmp_path) -> Generator[SQLiteBackend, None, None]:
    """Fresh SQLite database per test."""
    sqlite_backend = SQLiteBackend(tmp_path / "profiles.db")
    sqlite_backend.init_db()
    set_backend(sqlite_backend)
    yield sqlite_backend
    set_backend(None)


@pytest.fixture(autouse=True)
def storage() -> Generator[StorageClient, None, None]:
    """Local storage rooted where the app serves /files from."""
    provider = LocalStorageProvider(
        base_path=settings.LOCAL_STORAGE_PATH,
        url_prefix="http://testserver/files",
    )
    client = StorageClient(provider)
    set_storage_client(client)
    yield client
    reset_storage_client()


# =============================================================================
# TEST CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a synchronous test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unsafe_client() -> Generator[TestClient, None, None]:
    """Test client that returns 500 responses instead of re-raising server errors."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def auth_headers(user: dict[str, str]) -> dict[str, str]:
    """Host token header for a test user."""
    return {settings.USER_TOKEN_HEADER: user["token"]}


def make_context(user: dict[str, str], level: AccessLevel = AccessLevel.CUSTOMER,
                 experience_id: str = EXPERIENCE_ID) -> AuthContext:
    return AuthContext(
        user_id=user["user_id"],
        experience_id=experience_id,
        has_access=level != AccessLevel.NO_ACCESS,
        access_level=level,
    )


# =============================================================================
# SAMPLE DATA
# =============================================================================


PITCH = "We help early-stage founders meet the right investors in half the time."
INTRO = "Seed investor focused on developer tools and B2B SaaS across Europe and MENA."


@pytest.fixture
def founder_data() -> dict[str, Any]:
    """A complete, valid founder profile."""
    return {
        "startupName": "Acme Robotics",
        "industry": "Robotics",
        "stage": "mvp",
        "fundingAsk": {"min": 50000, "max": 250000},
        "briefPitch": PITCH,
        "website": "https://acme.example.com",
        "location": "Dubai",
        "teamSize": 4,
    }


@pytest.fixture
def investor_data() -> dict[str, Any]:
    """A complete, valid investor profile."""
    return {
        "sectors": ["DevTools", "SaaS"],
        "stages": ["idea", "mvp"],
        "geography": ["Europe", "MENA"],
        "checkSize": {"min": 25000, "max": 100000},
        "introNote": INTRO,
    }


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Clean up after each test."""
    yield
    app.dependency_overrides.clear()
