from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from career_auth.domain.entities.user import (
    AuthSession,
    OAuthAccount,
    OAuthProvider,
    User,
    UserToken,
    UserTokenKind,
)


TAuthResult = TypeVar("TAuthResult")


class AuthPort(Protocol):
    def execute_in_transaction(self, fn: Callable[[AuthPort], TAuthResult]) -> TAuthResult:
        ...

    def get_user_by_id(self, *, user_id: str) -> User | None:
        ...

    def get_user_by_email(self, *, email: str) -> User | None:
        ...

    def create_user(
        self,
        *,
        user_id: str,
        name: str,
        email: str,
        password_hash: str | None,
        email_verified_at: datetime | None,
        is_active: bool,
        created_at: datetime,
        updated_at: datetime,
    ) -> User:
        ...

    def update_user_password_hash(self, *, user_id: str, password_hash: str, updated_at: datetime) -> None:
        ...

    def mark_user_email_verified(self, *, user_id: str, verified_at: datetime) -> None:
        ...

    def update_user_is_active(self, *, user_id: str, is_active: bool, updated_at: datetime) -> None:
        ...

    def update_user_name(self, *, user_id: str, name: str, updated_at: datetime) -> User | None:
        ...

    def delete_user(self, *, user_id: str) -> bool:
        ...

    def create_oauth_account(
        self,
        *,
        account_id: str,
        user_id: str,
        provider: OAuthProvider,
        provider_account_id: str,
        created_at: datetime,
    ) -> OAuthAccount:
        ...

    def get_oauth_account(
        self,
        *,
        provider: OAuthProvider,
        provider_account_id: str,
    ) -> OAuthAccount | None:
        ...

    def create_session(
        self,
        *,
        session_id: str,
        user_id: str,
        refresh_token_hash: str,
        csrf_token_hash: str,
        expires_at: datetime,
        user_agent: str | None,
        ip: str | None,
        created_at: datetime,
    ) -> AuthSession:
        ...

    def get_session_by_refresh_token_hash(self, *, refresh_token_hash: str) -> AuthSession | None:
        ...

    def revoke_live_session(
        self,
        *,
        refresh_token_hash: str,
        csrf_token_hash: str,
        revoked_at: datetime,
    ) -> AuthSession | None:
        """Revoke the live, unexpired session matching both hashes; single conditional update."""
        ...

    def revoke_session(self, *, session_id: str, revoked_at: datetime) -> bool:
        ...

    def revoke_sessions_for_user(self, *, user_id: str, revoked_at: datetime) -> int:
        ...

    def update_session_csrf_token_hash(
        self,
        *,
        refresh_token_hash: str,
        csrf_token_hash: str,
        used_at: datetime,
    ) -> bool:
        ...

    def delete_sessions_inactive_before(self, *, cutoff: datetime) -> int:
        ...

    def create_user_token(
        self,
        *,
        token_id: str,
        user_id: str,
        kind: UserTokenKind,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> UserToken:
        ...

    def invalidate_user_tokens(self, *, user_id: str, kind: UserTokenKind, used_at: datetime) -> int:
        ...

    def get_active_user_token(self, *, token_hash: str, kind: UserTokenKind, now: datetime) -> UserToken | None:
        ...

    def consume_user_token(self, *, token_id: str, used_at: datetime) -> bool:
        ...
