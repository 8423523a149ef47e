from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from career_auth.domain.entities.oauth import OAuthCorrelation


@dataclass(frozen=True)
class AuthUserOutput:
    id: str
    name: str
    email: str
    email_verified: bool
    is_active: bool
    is_admin: bool


@dataclass(frozen=True)
class RegisterUserInput:
    name: str
    email: str
    password: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class LoginLocalInput:
    email: str
    password: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class RefreshSessionInput:
    refresh_token: str
    csrf_token: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class LogoutInput:
    refresh_token: str
    csrf_token: str


@dataclass(frozen=True)
class IssuedSession:
    session_id: str
    refresh_token: str
    csrf_token: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthTokensOutput:
    user: AuthUserOutput
    access_token: str
    access_expires_at: datetime
    session: IssuedSession


@dataclass(frozen=True)
class AccessTokenPayload:
    user_id: str
    email: str
    kind: str
    expires_at: datetime


@dataclass(frozen=True)
class OAuthTokenSet:
    access_token: str
    token_type: str
    expires_in: int | None
    id_token: str | None


@dataclass(frozen=True)
class OAuthProfile:
    subject: str
    email: str
    email_verified: bool
    name: str | None


@dataclass(frozen=True)
class StartOAuthOutput:
    authorization_url: str
    correlation: OAuthCorrelation


@dataclass(frozen=True)
class CompleteOAuthInput:
    provider: str
    code: str
    code_verifier: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class VerifyEmailInput:
    token: str


@dataclass(frozen=True)
class ResetPasswordInput:
    token: str
    new_password: str
