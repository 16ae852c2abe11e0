"""
Tests for pitch-deck uploads.

These tests verify:
- Type, size and emptiness validation at the exact boundaries
- Stored files are reachable at the returned URL
- Storage failures and timeouts surface as UploadFailed (502)
"""

import asyncio
from urllib.parse import urlparse

from fastapi.testclient import TestClient

from conftest import EXPERIENCE_ID, FOUNDER, auth_headers, make_context
from core.uploads import UploadBroker, sanitize_filename
from integrations.storage import StorageClient, set_storage_client
from integrations.storage.base import StorageProvider, UploadResult
from integrations.storage.providers.local import LocalStorageProvider
from models.errors import ErrorKind

PDF = "application/pdf"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
TEN_MIB = 10 * 1024 * 1024


class FailingProvider(StorageProvider):
    """Provider whose uploads are always rejected (or never finish)."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    @property
    def name(self) -> str:
        return "failing"

    async def upload(self, bucket, key, data, content_type=None, metadata=None) -> UploadResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        return UploadResult(success=False, error="bucket unavailable")

    def get_public_url(self, bucket, key) -> str:
        return f"https://blob.test/{bucket}/{key}"


def _upload(client: TestClient, content: bytes, content_type: str = PDF,
            filename: str = "deck.pdf", field: str = "file"):
    return client.post(
        "/api/upload",
        params={"experienceId": EXPERIENCE_ID},
        files={field: (filename, content, content_type)},
        headers=auth_headers(FOUNDER),
    )


class TestUploadEndpoint:
    """Test suite for POST /api/upload."""

    def test_pdf_upload_succeeds_and_is_served(self, client: TestClient):
        """Test that an uploaded PDF is returned with a working URL."""
        content = b"%PDF-1.7 pitch deck"

        response = _upload(client, content)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["filename"] == "deck.pdf"
        assert data["size"] == len(content)
        assert data["type"] == PDF
        assert data["message"] == "File uploaded successfully"
        assert data["url"].startswith("http://testserver/files/pitch-decks/")

        fetched = client.get(urlparse(data["url"]).path)
        assert fetched.status_code == 200
        assert fetched.content == content

    def test_key_is_scoped_to_experience_and_user(self, client: TestClient):
        """Test that the stored path carries experience and user."""
        response = _upload(client, b"slides", content_type=PPTX, filename="deck.pptx")

        path = urlparse(response.json()["data"]["url"]).path
        assert f"/{EXPERIENCE_ID}/{FOUNDER['user_id']}/" in path
        assert path.endswith("/deck.pptx")

    def test_same_file_twice_gives_distinct_urls(self, client: TestClient):
        """Test that re-uploading produces an independent object."""
        first = _upload(client, b"%PDF-1.4 same")
        second = _upload(client, b"%PDF-1.4 same")

        assert first.json()["data"]["url"] != second.json()["data"]["url"]

    def test_invalid_type_rejected(self, client: TestClient):
        """Invalid deck type: a PNG is rejected with 400."""
        response = _upload(client, b"\x89PNG", content_type="image/png", filename="deck.png")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Invalid file type. Only PDF, PPT, and PPTX files are allowed.",
            "status": 400,
        }

    def test_exactly_max_size_accepted(self, client: TestClient):
        """Test that a file of exactly 10 MiB is accepted."""
        response = _upload(client, b"0" * TEN_MIB)

        assert response.status_code == 200
        assert response.json()["data"]["size"] == TEN_MIB

    def test_one_byte_over_max_rejected(self, client: TestClient):
        """Test that 10 MiB + 1 byte is rejected."""
        response = _upload(client, b"0" * (TEN_MIB + 1))

        assert response.status_code == 400
        assert response.json()["error"] == "File too large. Maximum size is 10MB."

    def test_empty_file_rejected(self, client: TestClient):
        """Test that a zero-byte file is rejected."""
        response = _upload(client, b"")

        assert response.status_code == 400
        assert response.json()["error"] == "File is empty"

    def test_missing_file_field_rejected(self, client: TestClient):
        """Test that a multipart body without the file field is rejected."""
        response = _upload(client, b"%PDF", field="document")

        assert response.status_code == 400
        assert response.json()["error"] == "No file provided"

    def test_unauthenticated_upload(self, client: TestClient):
        """Test that uploads require a token."""
        response = client.post(
            "/api/upload",
            params={"experienceId": EXPERIENCE_ID},
            files={"file": ("deck.pdf", b"%PDF", PDF)},
        )

        assert response.status_code == 401

    def test_body_not_parsed_before_auth(self, client: TestClient, host):
        """Test that a malformed body from an unauthenticated caller is a 401, not a parse error."""
        garbage = {"content-type": "multipart/form-data; boundary=xyz"}

        anonymous = client.post(
            "/api/upload",
            params={"experienceId": EXPERIENCE_ID},
            content=b"garbage",
            headers=garbage,
        )
        member = client.post(
            "/api/upload",
            params={"experienceId": EXPERIENCE_ID},
            content=b"garbage",
            headers={**garbage, **auth_headers(FOUNDER)},
        )

        assert anonymous.status_code == 401
        assert member.status_code == 400
        assert host.verify_calls == 1

    def test_storage_failure_is_502(self, client: TestClient):
        """Test that a storage rejection surfaces as UploadFailed."""
        set_storage_client(StorageClient(FailingProvider()))

        response = _upload(client, b"%PDF-1.7")

        assert response.status_code == 502
        assert response.json()["error"] == "Failed to upload file. Please try again."


class TestUploadBroker:
    """Test suite for UploadBroker."""

    async def test_timeout_is_upload_failed(self, monkeypatch):
        """Test that a storage call past the deadline is UploadFailed."""
        broker = UploadBroker(storage=StorageClient(FailingProvider(delay=1.0)))
        monkeypatch.setattr(broker, "_deadline", lambda size: 0.01)

        result = await broker.upload(make_context(FOUNDER), "deck.pdf", PDF, b"%PDF")

        assert result.error.kind == ErrorKind.UPLOAD_FAILED
        assert result.error.status == 502

    async def test_no_context_is_unauthenticated(self):
        """Test that the broker refuses calls without a context."""
        result = await UploadBroker().upload(None, "deck.pdf", PDF, b"%PDF")

        assert result.error.kind == ErrorKind.UNAUTHENTICATED

    def test_content_type_parameters_ignored(self):
        """Test that charset-style parameters do not break the type check."""
        assert UploadBroker().validate("deck.pdf", "Application/PDF; charset=binary", b"x") is None

    def test_custom_limit_message(self):
        """Test that the size message follows the configured limit."""
        broker = UploadBroker(max_bytes=5 * 1024 * 1024)

        assert broker.validate("deck.pdf", PDF, b"0" * (broker.max_bytes + 1)) == (
            "File too large. Maximum size is 5MB."
        )

    def test_sanitize_filename(self):
        """Test that client filenames are reduced to one safe segment."""
        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("C:\\decks\\My Deck (v2).pdf") == "My_Deck_v2_.pdf"
        assert sanitize_filename(None) == "upload"


class TestLocalStorageProvider:
    """Test suite for LocalStorageProvider."""

    async def test_upload_writes_under_bucket(self, tmp_path):
        """Test that an upload lands under the bucket directory with its URL."""
        provider = LocalStorageProvider(tmp_path, url_prefix="http://testserver/files")

        result = await provider.upload("pitch-decks", "exp/user/id/deck.pdf", b"%PDF", PDF)

        assert result.success
        assert result.file.url == "http://testserver/files/pitch-decks/exp/user/id/deck.pdf"
        assert result.file.name == "deck.pdf"
        assert (tmp_path / "pitch-decks" / "exp" / "user" / "id" / "deck.pdf").read_bytes() == b"%PDF"

    async def test_key_cannot_escape_root(self, tmp_path):
        """Test that keys resolving outside the base path are refused."""
        provider = LocalStorageProvider(tmp_path / "root")

        result = await provider.upload("pitch-decks", "../../outside.pdf", b"%PDF", PDF)

        assert not result.success
        assert not (tmp_path / "outside.pdf").exists()
