from __future__ import annotations

from typing import Any, Mapping

from career_auth.domain.entities.user import AuthSession, OAuthAccount, User, UserToken


def _as_str(value: Any) -> str:
    return str(value)


def map_row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=_as_str(row["id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row.get("password_hash"),
        email_verified_at=row.get("email_verified_at"),
        is_active=bool(row["is_active"]),
        is_admin=bool(row.get("is_admin") or False),
        ai_free_uses_used=int(row.get("ai_free_uses_used") or 0),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def map_row_to_auth_session(row: Mapping[str, Any]) -> AuthSession:
    return AuthSession(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        refresh_token_hash=row["refresh_token_hash"],
        csrf_token_hash=row["csrf_token_hash"],
        expires_at=row["expires_at"],
        revoked_at=row.get("revoked_at"),
        last_used_at=row.get("last_used_at"),
        user_agent=row.get("user_agent"),
        ip=row.get("ip"),
        created_at=row["created_at"],
    )


def map_row_to_oauth_account(row: Mapping[str, Any]) -> OAuthAccount:
    return OAuthAccount(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        provider=str(row["provider"]).upper(),
        provider_account_id=_as_str(row["provider_account_id"]),
        created_at=row["created_at"],
    )


def map_row_to_user_token(row: Mapping[str, Any]) -> UserToken:
    return UserToken(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        kind=row["kind"],
        token_hash=row["token_hash"],
        expires_at=row["expires_at"],
        used_at=row.get("used_at"),
        created_at=row["created_at"],
    )
