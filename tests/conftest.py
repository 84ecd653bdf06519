import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.config.settings import settings
from app.core import session_registry
from app.database.supabase_client import get_service_supabase, get_supabase
from app.main import app, subscribe_auth_events
from app.modules.auth.service import clear_auth_cache
from app.modules.profiles.service import ProfileService

PROFILE_DEFAULTS = {
    "full_name": None,
    "avatar_url": None,
    "provider": "email",
    "role": None,
    "sections": [],
    "action_buttons": [],
    "updated_at": None,
}

_clock = itertools.count()


def _now():
    return (datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=next(_clock))).isoformat()


class FakeQuery:
    """Just enough of the PostgREST builder for the profile tables."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.is_single = False
        self.order_by = None

    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, row):
        self.op = "insert"
        self.payload = row
        return self

    def update(self, values):
        self.op = "update"
        self.payload = values
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def single(self):
        self.is_single = True
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.op, list(self.filters)))
        failure = self.db.failures.get((self.table, self.op))
        if failure is not None:
            if not failure.get("sticky"):
                del self.db.failures[(self.table, self.op)]
            raise failure["error"]

        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            if any(row["id"] == self.payload["id"] for row in rows):
                raise APIError({"code": "23505", "message": "duplicate key value violates unique constraint"})
            row = {**PROFILE_DEFAULTS, "created_at": _now(), **self.payload}
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return SimpleNamespace(data=updated)
        if self.op == "delete":
            deleted = [row for row in rows if self._matches(row)]
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[dict(row) for row in deleted])

        found = [dict(row) for row in rows if self._matches(row)]
        if self.order_by:
            column, desc = self.order_by
            found.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self.is_single:
            if len(found) != 1:
                raise APIError({"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"})
            return SimpleNamespace(data=found[0])
        return SimpleNamespace(data=found)


class FakeAuth:
    """Supabase Auth double. Like gotrue, sign-in and sign-out notify every subscriber of the shared client."""

    def __init__(self):
        self.tokens = {}
        self.passwords = {}
        self.codes = {}
        self.signed_out = 0
        self.subscribers = {}
        self.events = []
        self._keys = itertools.count()

    def add_user(self, token, user_id, email, user_metadata=None, app_metadata=None, password=None, code=None):
        user = SimpleNamespace(
            id=user_id,
            email=email,
            user_metadata=user_metadata or {},
            app_metadata=app_metadata or {"provider": "email"},
            created_at="2026-01-01T00:00:00+00:00",
            updated_at=None,
        )
        self.tokens[token] = user
        if password:
            self.passwords[(email, password)] = token
        if code:
            self.codes[code] = token
        return user

    def on_auth_state_change(self, callback):
        key = next(self._keys)
        self.subscribers[key] = callback
        return SimpleNamespace(id=key, callback=callback, unsubscribe=lambda: self.subscribers.pop(key, None))

    def _notify(self, event, session):
        self.events.append(event)
        for callback in list(self.subscribers.values()):
            callback(event, session)

    def _session(self, token):
        session = SimpleNamespace(access_token=token, user=self.tokens[token])
        self._notify("SIGNED_IN", session)
        return SimpleNamespace(user=self.tokens[token], session=session)

    def get_user(self, jwt=None):
        if jwt not in self.tokens:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=self.tokens[jwt])

    def sign_in_with_password(self, credentials):
        token = self.passwords.get((credentials["email"], credentials["password"]))
        if token is None:
            raise Exception("Invalid login credentials")
        return self._session(token)

    def exchange_code_for_session(self, params):
        token = self.codes.get(params["auth_code"])
        if token is None:
            raise Exception("invalid flow state")
        return self._session(token)

    def get_session(self):
        raise Exception("network down")

    def sign_out(self):
        self.signed_out += 1
        self._notify("SIGNED_OUT", None)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = {}
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, code="500", message="upstream error", sticky=False):
        self.failures[(table, op)] = {
            "error": APIError({"code": code, "message": message}),
            "sticky": sticky,
        }

    def add_profile(self, **fields):
        row = {**PROFILE_DEFAULTS, "created_at": _now(), **fields}
        row.setdefault("email", f"{row['id']}@example.com")
        self.tables.setdefault(settings.profiles_table, []).append(row)
        return row

    def profile_rows(self):
        return self.tables.get(settings.profiles_table, [])

    def mutations(self):
        return [call for call in self.calls if call[1] in ("insert", "update", "delete")]


@pytest.fixture(autouse=True)
def isolated_sessions(monkeypatch):
    monkeypatch.setattr(settings, "profile_fetch_retry_delays", [])
    session_registry.clear()
    clear_auth_cache()
    yield
    session_registry.clear()
    clear_auth_cache()


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def profile_service(fake_supabase):
    return ProfileService(fake_supabase)


@pytest.fixture
def client(fake_supabase):
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_service_supabase] = lambda: fake_supabase
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in(fake_supabase):
    """Register a bearer token for a user id and return auth headers for it."""
    def _sign_in(user_id, email=None, **kwargs):
        token = f"token-{user_id}"
        fake_supabase.auth.add_user(token, user_id, email or f"{user_id}@example.com", **kwargs)
        return {"Authorization": f"Bearer {token}"}
    return _sign_in


@pytest.fixture
def wired_client(client, fake_supabase):
    """Test client whose shared auth client feeds the session registry, as on startup."""
    subscription = subscribe_auth_events(fake_supabase)
    yield client
    subscription.unsubscribe()
