"""Supabase Auth boundary and FastAPI authentication dependencies."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Any, Optional

from . import config
from .errors import IdentityProviderError
from .models.auth import AuthSession, AuthUser

security = HTTPBearer(auto_error=False)


def get_auth_user(user: Any) -> Optional[AuthUser]:
    """Map a Supabase user object to AuthUser.

    The username comes from user metadata, then the e-mail local part, then "User".
    """
    if not user:
        return None

    email = getattr(user, "email", None) or ""
    metadata = getattr(user, "user_metadata", None) or {}
    username = metadata.get("username") or email.split("@")[0] or "User"
    return AuthUser(id=str(user.id), email=email, username=username)


class IdentityProvider:
    """Thin wrapper over Supabase Auth.

    Every provider failure is re-raised as IdentityProviderError with the
    provider's own message; nothing is retried.
    """

    def __init__(self, client=None, admin_client=None):
        self._client = client
        self._admin_client = admin_client

    @property
    def client(self):
        if self._client is None:
            from .supabase_client import get_auth_client
            self._client = get_auth_client()
        return self._client

    @property
    def admin_client(self):
        if self._admin_client is None:
            from .supabase_client import get_supabase
            self._admin_client = get_supabase()
        return self._admin_client

    def _session(self, response) -> AuthSession:
        user = get_auth_user(getattr(response, "user", None))
        if user is None:
            raise IdentityProviderError("No user returned by the identity provider")
        session = getattr(response, "session", None)
        return AuthSession(
            user=user,
            access_token=getattr(session, "access_token", None),
            refresh_token=getattr(session, "refresh_token", None),
        )

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        return self._session(response)

    def sign_up(self, email: str, password: str, username: str) -> AuthSession:
        try:
            response = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"username": username}},
            })
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        return self._session(response)

    def send_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        try:
            self.client.auth.reset_password_for_email(email, options)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e

    def verify_token(self, access_token: str) -> AuthUser:
        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        user = get_auth_user(getattr(response, "user", None))
        if user is None:
            raise IdentityProviderError("Invalid authentication token")
        return user

    def update_password(self, access_token: str, new_password: str) -> None:
        user = self.verify_token(access_token)
        try:
            self.admin_client.auth.admin.update_user_by_id(user.id, {"password": new_password})
        except Exception as e:
            raise IdentityProviderError(str(e)) from e

    def update_profile(self, access_token: str, username: str) -> AuthUser:
        user = self.verify_token(access_token)
        try:
            self.admin_client.auth.admin.update_user_by_id(
                user.id, {"user_metadata": {"username": username}}
            )
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        return AuthUser(id=user.id, email=user.email, username=username)


_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> Optional[IdentityProvider]:
    """Return the provider, or None when Supabase Auth is not configured."""
    global _provider

    if not config.SUPABASE_URL or not (config.SUPABASE_ANON_KEY or config.SUPABASE_SERVICE_KEY):
        return None
    if _provider is None:
        _provider = IdentityProvider()
        print("[Auth] Supabase Auth provider initialized")
    return _provider


def require_identity_provider(
    provider: Optional[IdentityProvider] = Depends(get_identity_provider),
) -> IdentityProvider:
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )
    return provider


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    provider: Optional[IdentityProvider] = Depends(get_identity_provider),
) -> str:
    """
    Verify the Supabase access token and return the user ID.

    If Supabase is not configured, returns the anonymous user ID for development.
    """
    # Development fallback
    if provider is None:
        print("[Auth] Using anonymous user (Supabase not configured)")
        return config.ANONYMOUS_USER_ID

    if not credentials:
        print("[Auth] No credentials provided, using anonymous user")
        return config.ANONYMOUS_USER_ID

    try:
        user = provider.verify_token(credentials.credentials)
        return user.id
    except IdentityProviderError as e:
        print(f"[Auth] Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication failed: {e.message}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials
