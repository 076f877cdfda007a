from datetime import datetime, timedelta
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from ..auth import get_identity_provider
from ..deps import get_clock
from ..errors import IdentityProviderError
from ..main import app
from ..models.auth import AuthSession, AuthUser
from ..services.session import StudySession
from ..store import MemoryStore, get_store

FIXED_NOW = datetime(2026, 10, 18, 9, 30)


class FakeClock:
    """Callable clock that tests move forward by hand."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now += timedelta(days=days, hours=hours)


class FakeIdentityProvider:
    """In-memory stand-in for Supabase Auth with the same surface as IdentityProvider."""

    def __init__(self):
        self.users: Dict[str, dict] = {
            "alice@example.com": {"id": "user-alice", "password": "secret123", "username": "alice"},
        }
        self.reset_requests = []

    def _user(self, email: str) -> AuthUser:
        row = self.users[email]
        return AuthUser(id=row["id"], email=email, username=row["username"])

    def sign_in(self, email, password):
        row = self.users.get(email)
        if row is None or row["password"] != password:
            raise IdentityProviderError("Invalid login credentials")
        return AuthSession(user=self._user(email), access_token=f"token-{row['id']}")

    def sign_up(self, email, password, username):
        if email in self.users:
            raise IdentityProviderError("User already registered")
        self.users[email] = {"id": f"user-{username}", "password": password, "username": username}
        return AuthSession(user=self._user(email))

    def send_password_reset(self, email, redirect_to=None):
        self.reset_requests.append(email)

    def verify_token(self, access_token):
        for email, row in self.users.items():
            if access_token == f"token-{row['id']}":
                return self._user(email)
        raise IdentityProviderError("invalid JWT: unable to parse or verify signature")

    def update_password(self, access_token, new_password):
        user = self.verify_token(access_token)
        self.users[user.email]["password"] = new_password

    def update_profile(self, access_token, username):
        user = self.verify_token(access_token)
        self.users[user.email]["username"] = username
        return self._user(user.email)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(store, clock):
    return StudySession(store, "user-1", clock=clock)


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def client(store, clock, identity_provider):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    yield TestClient(app)
    app.dependency_overrides.clear()
