from types import SimpleNamespace

import pytest

from ..auth import IdentityProvider, get_auth_user
from ..errors import IdentityProviderError


def _user(**kwargs):
    defaults = {"id": "u-1", "email": "carol@example.com", "user_metadata": {}}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class FakeAuth:
    """Records calls and plays back canned supabase-py auth responses."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []
        self.admin = self

    def _respond(self, name, *args):
        self.calls.append((name, args))
        if self.error:
            raise self.error
        return SimpleNamespace(
            user=_user(user_metadata={"username": "carol"}),
            session=SimpleNamespace(access_token="access", refresh_token="refresh"),
        )

    def sign_in_with_password(self, credentials):
        return self._respond("sign_in_with_password", credentials)

    def sign_up(self, credentials):
        return self._respond("sign_up", credentials)

    def reset_password_for_email(self, email, options):
        return self._respond("reset_password_for_email", email, options)

    def get_user(self, token):
        return self._respond("get_user", token)

    def update_user_by_id(self, user_id, attributes):
        return self._respond("update_user_by_id", user_id, attributes)


def _provider(error=None):
    auth = FakeAuth(error=error)
    client = SimpleNamespace(auth=auth)
    return IdentityProvider(client=client, admin_client=client), auth


def test_username_fallbacks():
    assert get_auth_user(_user(user_metadata={"username": "cee"})).username == "cee"
    assert get_auth_user(_user()).username == "carol"
    assert get_auth_user(_user(email="")).username == "User"
    assert get_auth_user(None) is None


def test_sign_in_returns_session():
    provider, auth = _provider()

    session = provider.sign_in("carol@example.com", "pw123456")

    assert session.user.username == "carol"
    assert session.access_token == "access"
    assert auth.calls == [("sign_in_with_password", ({"email": "carol@example.com", "password": "pw123456"},))]


def test_sign_up_sends_username_metadata():
    provider, auth = _provider()

    provider.sign_up("carol@example.com", "pw123456", "carol")

    _, (payload,) = auth.calls[0]
    assert payload["options"] == {"data": {"username": "carol"}}


def test_provider_errors_pass_through_verbatim():
    provider, _ = _provider(error=RuntimeError("Email not confirmed"))

    with pytest.raises(IdentityProviderError) as exc_info:
        provider.sign_in("carol@example.com", "pw123456")

    assert exc_info.value.message == "Email not confirmed"
    assert exc_info.value.status_code == 400


def test_password_reset_redirect():
    provider, auth = _provider()

    provider.send_password_reset("carol@example.com", redirect_to="https://app.example.com/reset")

    assert auth.calls == [(
        "reset_password_for_email",
        ("carol@example.com", {"redirect_to": "https://app.example.com/reset"}),
    )]


def test_update_profile_verifies_token_first():
    provider, auth = _provider()

    user = provider.update_profile("access", "cee")

    assert user.username == "cee"
    assert [name for name, _ in auth.calls] == ["get_user", "update_user_by_id"]
    assert auth.calls[1][1] == ("u-1", {"user_metadata": {"username": "cee"}})
