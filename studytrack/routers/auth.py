"""Authentication endpoints backed by Supabase Auth."""
from fastapi import APIRouter, Depends

from ..auth import IdentityProvider, get_access_token, require_identity_provider
from ..models.auth import (
    AuthSession,
    AuthUser,
    MessageResponse,
    PasswordResetRequest,
    SignInRequest,
    SignUpRequest,
    UpdatePasswordRequest,
    UpdateProfileRequest,
)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/sign-in", response_model=AuthSession)
async def sign_in(request: SignInRequest, provider: IdentityProvider = Depends(require_identity_provider)):
    return provider.sign_in(request.email, request.password)


@router.post("/sign-up", response_model=AuthSession)
async def sign_up(request: SignUpRequest, provider: IdentityProvider = Depends(require_identity_provider)):
    return provider.sign_up(request.email, request.password, request.username)


@router.post("/password-reset", response_model=MessageResponse)
async def send_password_reset(
    request: PasswordResetRequest,
    provider: IdentityProvider = Depends(require_identity_provider),
):
    provider.send_password_reset(request.email)
    return MessageResponse(message="Check your email for password reset instructions")


@router.post("/password", response_model=MessageResponse)
async def update_password(
    request: UpdatePasswordRequest,
    access_token: str = Depends(get_access_token),
    provider: IdentityProvider = Depends(require_identity_provider),
):
    provider.update_password(access_token, request.password)
    return MessageResponse(message="Your password has been successfully updated.")


@router.patch("/profile", response_model=AuthUser)
async def update_profile(
    request: UpdateProfileRequest,
    access_token: str = Depends(get_access_token),
    provider: IdentityProvider = Depends(require_identity_provider),
):
    return provider.update_profile(access_token, request.username)
