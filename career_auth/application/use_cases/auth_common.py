from __future__ import annotations

from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode
from uuid import uuid4

from career_auth.application.dto.auth import AuthTokensOutput, AuthUserOutput, IssuedSession
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.domain.entities.user import User, UserTokenKind
from career_auth.domain.exceptions import PasswordPolicyError
from career_auth.domain.services.password_policy import evaluate_password_policy


USER_TOKEN_NBYTES = 32


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def build_auth_user_output(user: User) -> AuthUserOutput:
    return AuthUserOutput(
        id=user.id,
        name=user.name,
        email=user.email,
        email_verified=user.email_verified,
        is_active=user.is_active,
        is_admin=user.is_admin,
    )


def ensure_password_policy(password: str, email: str | None) -> None:
    result = evaluate_password_policy(password, email)
    if not result.ok:
        raise PasswordPolicyError(result.reasons)


def build_tokens_output(
    *,
    user: User,
    session: IssuedSession,
    token_port: TokenPort,
) -> AuthTokensOutput:
    access_token, access_expires_at = token_port.create_access_token(
        user_id=user.id,
        email=user.email,
        now=utcnow(),
    )
    return AuthTokensOutput(
        user=build_auth_user_output(user),
        access_token=access_token,
        access_expires_at=access_expires_at,
        session=session,
    )


def issue_user_token(
    *,
    auth_port: AuthPort,
    token_port: TokenPort,
    user_id: str,
    kind: UserTokenKind,
    ttl: timedelta,
) -> str:
    """Store a fresh single-use token of ``kind`` and return its raw value.

    Earlier unused tokens of the same kind stop working.
    """
    now = utcnow()
    auth_port.invalidate_user_tokens(user_id=user_id, kind=kind, used_at=now)
    raw_token = token_port.generate_opaque_token(USER_TOKEN_NBYTES)
    auth_port.create_user_token(
        token_id=str(uuid4()),
        user_id=user_id,
        kind=kind,
        token_hash=token_port.hash_opaque_token(value=raw_token),
        expires_at=now + ttl,
        created_at=now,
    )
    return raw_token


def build_frontend_link(frontend_url: str, path: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}{path}?{urlencode({'token': token})}"
