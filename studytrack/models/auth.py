"""Request/response models for the identity provider endpoints."""
from typing import Optional

from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    id: str
    email: str
    username: str


class AuthSession(BaseModel):
    user: AuthUser
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class SignInRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class SignUpRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    username: str = Field(min_length=1)


class PasswordResetRequest(BaseModel):
    email: str = Field(min_length=3)


class UpdatePasswordRequest(BaseModel):
    password: str = Field(min_length=6)


class UpdateProfileRequest(BaseModel):
    username: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str
