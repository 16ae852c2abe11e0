"""
Tests for the profile service and the /api/profile endpoints.

These tests verify:
- Ownership: only the caller's own profile can be written
- Draft vs complete validation and the draft-to-complete transition
- Role lock, PATCH merge semantics and timestamps
- The HTTP envelopes for each outcome
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from conftest import EXPERIENCE_ID, FOUNDER, INVESTOR, auth_headers, make_context
from core.profiles import ProfileService
from models.errors import ErrorKind
from models.profile import ProfileInput, ProfilePatch, Role


@pytest.fixture
def service() -> ProfileService:
    return ProfileService()


@pytest.fixture
def founder_ctx():
    return make_context(FOUNDER)


def _founder_input(data, is_complete=True, user=FOUNDER, role=Role.FOUNDER) -> ProfileInput:
    return ProfileInput(user_id=user["user_id"], role=role, data=data, is_complete=is_complete)


class TestUpsert:
    """Test suite for ProfileService.upsert."""

    async def test_create_complete_profile(self, service, founder_ctx, founder_data):
        """Test that a complete founder profile is stored."""
        result = await service.upsert(founder_ctx, _founder_input(founder_data))

        assert result.success
        record = result.value
        assert record.user_id == FOUNDER["user_id"]
        assert record.experience_id == EXPERIENCE_ID
        assert record.role == Role.FOUNDER
        assert record.is_complete is True
        assert record.completed_at is not None
        assert record.data["startupName"] == "Acme Robotics"

    async def test_cannot_write_another_users_profile(self, service, founder_ctx, founder_data):
        """Test that writing someone else's profile is forbidden and changes nothing."""
        result = await service.upsert(founder_ctx, _founder_input(founder_data, user=INVESTOR))

        assert result.error.kind == ErrorKind.FORBIDDEN
        assert result.error.message == "You can only create your own profile"
        status = await service.check(make_context(INVESTOR))
        assert status.value.has_profile is False

    async def test_ownership_checked_before_schema(self, service, founder_ctx):
        """Test that an invalid payload for another user is still a 403."""
        result = await service.upsert(founder_ctx, _founder_input({}, user=INVESTOR))

        assert result.error.kind == ErrorKind.FORBIDDEN

    async def test_invalid_complete_profile_has_details(self, service, founder_ctx, founder_data):
        """Test that schema failures return field-level details."""
        founder_data["briefPitch"] = "short"

        result = await service.upsert(founder_ctx, _founder_input(founder_data))

        assert result.error.kind == ErrorKind.INVALID_PAYLOAD
        assert result.error.message == "Invalid profile data"
        assert result.error.details[0]["location"] == "briefPitch"
        assert (await service.check(founder_ctx)).value.has_profile is False

    async def test_draft_then_complete(self, service, founder_ctx, founder_data):
        """Draft-to-complete: a partial draft is later completed under the same id."""
        draft = await service.upsert(
            founder_ctx, _founder_input({"startupName": "Acme"}, is_complete=False)
        )
        assert draft.success
        assert draft.value.is_complete is False
        assert draft.value.completed_at is None

        complete = await service.upsert(founder_ctx, _founder_input(founder_data))

        assert complete.success
        assert complete.value.id == draft.value.id
        assert complete.value.created_at == draft.value.created_at
        assert complete.value.is_complete is True
        assert complete.value.completed_at is not None

    async def test_completed_at_is_preserved(self, service, founder_ctx, founder_data):
        """Test that completedAt is set once and kept afterwards."""
        first = await service.upsert(founder_ctx, _founder_input(founder_data))
        founder_data["location"] = "Riyadh"
        second = await service.upsert(founder_ctx, _founder_input(founder_data))

        assert second.value.completed_at == first.value.completed_at
        assert second.value.data["location"] == "Riyadh"

    async def test_role_change_allowed_while_draft(self, service, founder_ctx, investor_data):
        """Test that a never-completed draft may switch role."""
        await service.upsert(founder_ctx, _founder_input({"startupName": "Acme"}, is_complete=False))

        result = await service.upsert(founder_ctx, _founder_input(investor_data, role=Role.INVESTOR))

        assert result.success
        assert result.value.role == Role.INVESTOR

    async def test_role_locked_after_completion(self, service, founder_ctx, founder_data, investor_data):
        """Test that the role cannot change once the profile has been complete."""
        await service.upsert(founder_ctx, _founder_input(founder_data))

        result = await service.upsert(founder_ctx, _founder_input(investor_data, role=Role.INVESTOR))

        assert result.error.kind == ErrorKind.CONFLICT
        assert result.error.status == 409
        stored = await service.get(founder_ctx, FOUNDER["user_id"])
        assert stored.value.role == Role.FOUNDER

    async def test_revert_to_draft_keeps_role_lock(self, service, founder_ctx, founder_data, investor_data):
        """Test that a complete profile may go back to draft but stays role-locked."""
        first = await service.upsert(founder_ctx, _founder_input(founder_data))

        reverted = await service.upsert(founder_ctx, _founder_input(founder_data, is_complete=False))
        switched = await service.upsert(
            founder_ctx, _founder_input(investor_data, is_complete=False, role=Role.INVESTOR)
        )

        assert reverted.value.is_complete is False
        assert reverted.value.completed_at == first.value.completed_at
        assert switched.error.kind == ErrorKind.CONFLICT

    async def test_updated_at_strictly_increases(self, service, founder_ctx, founder_data):
        """Test that every write moves updatedAt forward."""
        first = await service.upsert(founder_ctx, _founder_input(founder_data))
        second = await service.upsert(founder_ctx, _founder_input(founder_data))
        third = await service.upsert(founder_ctx, _founder_input(founder_data))

        assert first.value.updated_at < second.value.updated_at < third.value.updated_at

    async def test_profiles_are_per_experience(self, service, founder_data):
        """Test that the same user has independent profiles per experience."""
        alpha = make_context(FOUNDER)
        beta = make_context(FOUNDER, experience_id="exp_beta")

        await service.upsert(alpha, _founder_input(founder_data))

        assert (await service.check(alpha)).value.has_profile is True
        assert (await service.check(beta)).value.has_profile is False

    async def test_store_failure_is_internal(self, founder_ctx, founder_data):
        """Test that a store exception becomes an Internal result."""

        class BrokenStore:
            def get_profile(self, user_id, experience_id):
                raise RuntimeError("disk on fire")

            def upsert_profile(self, row):
                raise RuntimeError("disk on fire")

        result = await ProfileService(store=BrokenStore()).upsert(
            founder_ctx, _founder_input(founder_data)
        )

        assert result.error.kind == ErrorKind.INTERNAL
        assert result.error.message == "Internal server error"


class TestUpdate:
    """Test suite for ProfileService.update (PATCH semantics)."""

    async def test_merge_keeps_untouched_fields(self, service, founder_ctx, founder_data):
        """Test that only supplied keys change."""
        await service.upsert(founder_ctx, _founder_input(founder_data))

        result = await service.update(
            founder_ctx, FOUNDER["user_id"], ProfilePatch(data={"location": "Cairo"})
        )

        assert result.success
        assert result.value.data["location"] == "Cairo"
        assert result.value.data["startupName"] == "Acme Robotics"

    async def test_null_removes_optional_key(self, service, founder_ctx, founder_data):
        """Test that a null value removes the key."""
        await service.upsert(founder_ctx, _founder_input(founder_data))

        result = await service.update(
            founder_ctx, FOUNDER["user_id"], ProfilePatch(data={"teamSize": None})
        )

        assert result.success
        assert "teamSize" not in result.value.data

    async def test_merged_result_is_revalidated(self, service, founder_ctx, founder_data):
        """Test that removing a required field from a complete profile fails."""
        await service.upsert(founder_ctx, _founder_input(founder_data))

        result = await service.update(
            founder_ctx, FOUNDER["user_id"], ProfilePatch(data={"website": None})
        )

        assert result.error.kind == ErrorKind.INVALID_PAYLOAD
        stored = await service.get(founder_ctx, FOUNDER["user_id"])
        assert stored.value.data["website"] == founder_data["website"]

    async def test_patch_can_complete_a_draft(self, service, founder_ctx, founder_data):
        """Test that isComplete can be flipped by a patch."""
        await service.upsert(founder_ctx, _founder_input({"startupName": "Acme"}, is_complete=False))

        result = await service.update(
            founder_ctx, FOUNDER["user_id"], ProfilePatch(data=founder_data, is_complete=True)
        )

        assert result.value.is_complete is True
        assert result.value.completed_at is not None

    async def test_cannot_patch_another_user(self, service, founder_ctx):
        """Test that patching someone else's profile is forbidden."""
        result = await service.update(founder_ctx, INVESTOR["user_id"], ProfilePatch(data={}))

        assert result.error.kind == ErrorKind.FORBIDDEN
        assert result.error.message == "You can only update your own profile"

    async def test_patch_missing_profile(self, service, founder_ctx):
        """Test that patching a profile that does not exist is a 404."""
        result = await service.update(founder_ctx, FOUNDER["user_id"], ProfilePatch(data={}))

        assert result.error.kind == ErrorKind.NOT_FOUND


class TestReads:
    """Test suite for check and get."""

    async def test_check_without_profile(self, service, founder_ctx):
        """Test the empty status."""
        status = (await service.check(founder_ctx)).value

        assert status.to_dict() == {"hasProfile": False, "isComplete": False, "role": None}

    async def test_get_missing_profile(self, service, founder_ctx):
        """Test that a missing profile is a 404."""
        result = await service.get(founder_ctx, FOUNDER["user_id"])

        assert result.error.kind == ErrorKind.NOT_FOUND
        assert result.error.message == "Profile not found"

    async def test_member_can_read_another_members_profile(self, service, founder_ctx, investor_data):
        """Test that reads are open to any member of the experience."""
        investor_ctx = make_context(INVESTOR)
        await service.upsert(
            investor_ctx,
            ProfileInput(user_id=INVESTOR["user_id"], role=Role.INVESTOR, data=investor_data, is_complete=True),
        )

        result = await service.get(founder_ctx, INVESTOR["user_id"])

        assert result.success
        assert result.value.role == Role.INVESTOR


class TestProfileEndpoints:
    """Test suite for /api/profile HTTP behavior."""

    def _create(self, client, user, body):
        return client.post(
            "/api/profile/create",
            json={"experienceId": EXPERIENCE_ID, "userId": user["user_id"], **body},
            headers=auth_headers(user),
        )

    def test_create_and_check(self, client: TestClient, founder_data):
        """Test the create response and the subsequent check."""
        response = self._create(
            client, FOUNDER, {"role": "FOUNDER", "data": founder_data, "isComplete": True}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["message"] == "Profile created successfully!"
        profile = body["data"]
        assert profile["id"]
        assert profile["userId"] == FOUNDER["user_id"]
        assert profile["role"] == "FOUNDER"
        assert profile["isComplete"] is True
        assert profile["data"]["startupName"] == "Acme Robotics"
        assert "completedAt" not in profile

        check = client.get(
            "/api/profile/check",
            params={"experienceId": EXPERIENCE_ID},
            headers=auth_headers(FOUNDER),
        )
        assert check.json()["data"] == {"hasProfile": True, "isComplete": True, "role": "FOUNDER"}

    def test_draft_message(self, client: TestClient):
        """Test that drafts report a draft message."""
        response = self._create(
            client, FOUNDER, {"role": "FOUNDER", "data": {"startupName": "Acme"}, "isComplete": False}
        )

        assert response.json()["data"]["message"] == "Profile saved as draft"

    def test_create_requires_experience_id(self, client: TestClient, founder_data):
        """Test that the body must carry experienceId."""
        response = client.post(
            "/api/profile/create",
            json={"userId": FOUNDER["user_id"], "role": "FOUNDER", "data": founder_data},
            headers=auth_headers(FOUNDER),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "experienceId is required"

    def test_create_without_role_is_rejected(self, client: TestClient, founder_data):
        """Test that a body missing role fails request validation."""
        response = self._create(client, FOUNDER, {"data": founder_data})

        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_invalid_data_is_400_with_details(self, client: TestClient, founder_data):
        """Test the invalid payload envelope."""
        founder_data["stage"] = "unicorn"

        response = self._create(
            client, FOUNDER, {"role": "FOUNDER", "data": founder_data, "isComplete": True}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid profile data"
        assert body["details"][0]["location"] == "stage"

    def test_get_and_patch(self, client: TestClient, founder_data):
        """Test reading and patching through the API."""
        self._create(client, FOUNDER, {"role": "FOUNDER", "data": founder_data, "isComplete": True})

        read = client.get(
            f"/api/profile/{FOUNDER['user_id']}",
            params={"experienceId": EXPERIENCE_ID},
            headers=auth_headers(INVESTOR),
        )
        assert read.status_code == 200
        assert read.json()["data"]["data"]["startupName"] == "Acme Robotics"

        patched = client.patch(
            f"/api/profile/{FOUNDER['user_id']}",
            json={"experienceId": EXPERIENCE_ID, "data": {"location": "Amman"}},
            headers=auth_headers(FOUNDER),
        )
        assert patched.status_code == 200
        assert patched.json()["data"]["message"] == "Profile updated successfully"
        assert patched.json()["data"]["data"]["location"] == "Amman"

    def test_patch_other_user_is_403(self, client: TestClient, founder_data):
        """Test that PATCH on another user's profile is forbidden."""
        self._create(client, FOUNDER, {"role": "FOUNDER", "data": founder_data, "isComplete": True})

        response = client.patch(
            f"/api/profile/{FOUNDER['user_id']}",
            json={"experienceId": EXPERIENCE_ID, "data": {"location": "Amman"}},
            headers=auth_headers(INVESTOR),
        )

        assert response.status_code == 403

    def test_get_unknown_profile_is_404(self, client: TestClient):
        """Test the 404 envelope."""
        response = client.get(
            "/api/profile/user_nobody",
            params={"experienceId": EXPERIENCE_ID},
            headers=auth_headers(FOUNDER),
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Profile not found", "status": 404}

    def test_unexpected_exception_is_500(self, unsafe_client: TestClient):
        """Test that an exception escaping a route is turned into a 500 envelope."""
        with patch("api.routers.profile.get_profile_service", side_effect=RuntimeError("boom")):
            response = unsafe_client.get(
                "/api/profile/check",
                params={"experienceId": EXPERIENCE_ID},
                headers=auth_headers(FOUNDER),
            )

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"
