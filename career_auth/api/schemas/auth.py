from __future__ import annotations

from pydantic import Field

from .base import ApiModel


class RegisterRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class LoginRequest(ApiModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class EmailRequest(ApiModel):
    email: str = Field(..., min_length=3, max_length=255)


class VerifyEmailRequest(ApiModel):
    token: str = Field(..., min_length=1, max_length=500)


class ResetPasswordRequest(ApiModel):
    token: str = Field(..., min_length=1, max_length=500)
    new_password: str = Field(..., min_length=1, max_length=256)


class AuthUserResponse(ApiModel):
    id: str
    name: str
    email: str
    email_verified: bool
    is_active: bool
    is_admin: bool


class AuthResponse(ApiModel):
    user: AuthUserResponse
    token: str
    csrf_token: str


class CsrfResponse(ApiModel):
    csrf_token: str | None


class TokenUserResponse(ApiModel):
    id: str
    email: str


class AuthMeResponse(ApiModel):
    user: TokenUserResponse


class OkResponse(ApiModel):
    ok: bool = True
