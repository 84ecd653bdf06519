import pytest
from fastapi import HTTPException

from app.modules.auth.service import AuthService


def test_session_fetch_failure_means_signed_out(fake_supabase):
    assert AuthService(fake_supabase).get_session() is None


def test_current_user_from_token(fake_supabase):
    fake_supabase.auth.add_user("tok", "user-1", "a@example.com", user_metadata={"name": "A"})
    user = AuthService(fake_supabase).get_current_user("tok")
    assert user["id"] == "user-1"
    assert user["user_metadata"] == {"name": "A"}


def test_current_user_is_cached(fake_supabase):
    fake_supabase.auth.add_user("tok", "user-1", "a@example.com")
    service = AuthService(fake_supabase)
    service.get_current_user("tok")
    del fake_supabase.auth.tokens["tok"]
    assert service.get_current_user("tok")["id"] == "user-1"


def test_logout_drops_cached_token(fake_supabase):
    fake_supabase.auth.add_user("tok", "user-1", "a@example.com")
    service = AuthService(fake_supabase)
    service.get_current_user("tok")
    del fake_supabase.auth.tokens["tok"]
    assert service.logout("tok") is True
    with pytest.raises(HTTPException) as exc:
        service.get_current_user("tok")
    assert exc.value.status_code == 401


def test_failed_code_exchange_returns_none(fake_supabase):
    assert AuthService(fake_supabase).exchange_code_for_session("unknown") is None
