import pytest
from fastapi import HTTPException

from app.config.settings import settings
from app.modules.profiles.schemas import AppRole, ProfileCreate, ProfileUpdate, SignupProvider
from app.modules.profiles.service import ProfileCreateError, ProfileFetchError

TABLE = settings.profiles_table


def auth_user(user_id="user-1", email="new@example.com", provider="email", **metadata):
    return {
        "id": user_id,
        "email": email,
        "user_metadata": metadata,
        "app_metadata": {"provider": provider},
    }


class TestFetchOrCreate:

    def test_absent_profile_returns_none(self, profile_service):
        assert profile_service.get_profile("missing") is None

    def test_creates_profile_on_first_sign_in(self, profile_service, fake_supabase):
        profile = profile_service.fetch_or_create_profile(
            auth_user(provider="google", name="Ada Lovelace", avatar_url="https://img/ada.png")
        )
        assert profile.id == "user-1"
        assert profile.full_name == "Ada Lovelace"
        assert profile.avatar_url == "https://img/ada.png"
        assert profile.provider == SignupProvider.GOOGLE
        assert profile.role is None
        assert profile.sections == []
        assert profile.action_buttons == []
        assert len(fake_supabase.profile_rows()) == 1

    def test_unknown_provider_stored_as_email(self, profile_service):
        profile = profile_service.fetch_or_create_profile(auth_user(provider="github"))
        assert profile.provider == SignupProvider.EMAIL

    def test_second_call_is_pure_fetch(self, profile_service, fake_supabase):
        first = profile_service.fetch_or_create_profile(auth_user())
        second = profile_service.fetch_or_create_profile(auth_user())
        assert first == second
        inserts = [call for call in fake_supabase.calls if call[1] == "insert"]
        assert len(inserts) == 1
        assert len(fake_supabase.profile_rows()) == 1

    def test_existing_profile_is_not_overwritten(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="user-1", email="old@example.com", role="finance", sections=["payments"])
        profile = profile_service.fetch_or_create_profile(auth_user(email="new@example.com"))
        assert profile.email == "old@example.com"
        assert profile.role == AppRole.FINANCE
        assert fake_supabase.mutations() == []

    def test_concurrent_insert_counts_as_created(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="user-1", email="raced@example.com")
        profile = profile_service.create_profile(ProfileCreate(id="user-1"))
        assert profile.email == "raced@example.com"

    def test_fetch_failure_is_not_not_found(self, profile_service, fake_supabase):
        fake_supabase.fail(TABLE, "select", code="57014", message="canceling statement due to statement timeout")
        with pytest.raises(ProfileFetchError) as exc:
            profile_service.fetch_or_create_profile(auth_user())
        assert not isinstance(exc.value, ProfileCreateError)
        assert fake_supabase.mutations() == []

    def test_insert_failure_raises_create_error(self, profile_service, fake_supabase):
        fake_supabase.fail(TABLE, "insert", code="42501", message="permission denied")
        with pytest.raises(ProfileCreateError):
            profile_service.fetch_or_create_profile(auth_user())


class TestUpdateProfile:

    def test_partial_update(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="user-2", role="sales", sections=["sales"], action_buttons=["view"])
        profile_service.update_profile(ProfileUpdate(id="user-2", action_buttons=[]))
        profile = profile_service.get_profile("user-2")
        assert profile.role == AppRole.SALES
        assert profile.sections == ["sales"]
        assert profile.action_buttons == []
        assert profile.updated_at is not None

    def test_role_none_clears_role(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="user-2", role="sales", sections=["sales"])
        profile_service.update_profile(ProfileUpdate(id="user-2", role="none"))
        assert profile_service.get_profile("user-2").role is None

    def test_admin_role_fills_defaults(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="user-2")
        profile_service.update_profile(ProfileUpdate(id="user-2", role="ceo"))
        profile = profile_service.get_profile("user-2")
        assert profile.role == AppRole.CEO
        assert "settings" in profile.sections
        assert "delete" in profile.action_buttons

    def test_unknown_ids_rejected(self):
        with pytest.raises(ValueError):
            ProfileUpdate(id="user-2", sections=["warehouse"])
        with pytest.raises(ValueError):
            ProfileUpdate(id="user-2", action_buttons=["approve"])
        with pytest.raises(ValueError):
            ProfileUpdate(id="user-2", role="owner")

    def test_missing_profile_is_404(self, profile_service):
        with pytest.raises(HTTPException) as exc:
            profile_service.update_profile(ProfileUpdate(id="nobody", role="sales"))
        assert exc.value.status_code == 404

    def test_store_failure_reported_not_retried(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="user-2")
        fake_supabase.fail(TABLE, "update", message="connection reset")
        with pytest.raises(HTTPException) as exc:
            profile_service.update_profile(ProfileUpdate(id="user-2", role="sales"))
        assert exc.value.status_code == 500
        assert len([c for c in fake_supabase.calls if c[1] == "update"]) == 1
        assert profile_service.get_profile("user-2").role is None


class TestDeleteProfile:

    def test_self_removal_rejected_before_store(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="admin-1", role="superadmin")
        with pytest.raises(HTTPException) as exc:
            profile_service.delete_profile("admin-1", acting_user_id="admin-1")
        assert exc.value.status_code == 400
        assert fake_supabase.calls == []
        assert len(fake_supabase.profile_rows()) == 1

    def test_admin_removes_other_profile(self, profile_service, fake_supabase):
        fake_supabase.add_profile(id="user-2")
        assert profile_service.delete_profile("user-2", acting_user_id="admin-1") is True
        assert profile_service.get_profile("user-2") is None


def test_list_profiles_newest_first(profile_service, fake_supabase):
    fake_supabase.add_profile(id="older")
    fake_supabase.add_profile(id="newer")
    assert [p.id for p in profile_service.list_profiles()] == ["newer", "older"]
