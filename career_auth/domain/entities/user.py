from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


OAuthProvider = Literal["GOOGLE"]
UserTokenKind = Literal["verify_email", "reset_password"]


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    password_hash: str | None
    email_verified_at: datetime | None
    is_active: bool
    is_admin: bool
    ai_free_uses_used: int
    created_at: datetime
    updated_at: datetime

    @property
    def email_verified(self) -> bool:
        return self.email_verified_at is not None


@dataclass(frozen=True)
class AuthSession:
    id: str
    user_id: str
    refresh_token_hash: str
    csrf_token_hash: str
    expires_at: datetime
    revoked_at: datetime | None
    last_used_at: datetime | None
    user_agent: str | None
    ip: str | None
    created_at: datetime

    def is_live(self, now: datetime) -> bool:
        return self.revoked_at is None and self.expires_at > now


@dataclass(frozen=True)
class OAuthAccount:
    id: str
    user_id: str
    provider: OAuthProvider
    provider_account_id: str
    created_at: datetime


@dataclass(frozen=True)
class UserToken:
    id: str
    user_id: str
    kind: UserTokenKind
    token_hash: str
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime
