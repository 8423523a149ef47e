from __future__ import annotations

from datetime import datetime
from typing import Literal, Protocol

from career_auth.application.dto.auth import AccessTokenPayload


TokenKind = Literal["access", "refresh"]


class TokenPort(Protocol):
    def create_token(self, *, user_id: str, email: str, kind: TokenKind, now: datetime) -> tuple[str, datetime]:
        ...

    def create_access_token(self, *, user_id: str, email: str, now: datetime) -> tuple[str, datetime]:
        ...

    def decode_token(self, *, token: str, expected_kind: TokenKind = "access") -> AccessTokenPayload:
        ...

    def generate_opaque_token(self, nbytes: int = 32) -> str:
        ...

    def hash_opaque_token(self, *, value: str) -> str:
        ...

    def refresh_session_expires_at(self, *, now: datetime) -> datetime:
        ...
