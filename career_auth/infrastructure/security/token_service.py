from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import jwt

from career_auth.application.dto.auth import AccessTokenPayload
from career_auth.application.ports.token_port import TokenKind, TokenPort
from career_auth.domain.exceptions import TokenExpiredError, TokenInvalidError, TokenWrongTypeError


JWT_ALGORITHM = "HS256"


class JwtTokenService(TokenPort):
    def __init__(
        self,
        *,
        jwt_secret: str,
        access_ttl_minutes: int,
        refresh_ttl_days: int,
        leeway_seconds: int = 0,
    ):
        self._jwt_secret = jwt_secret
        self._access_ttl_minutes = access_ttl_minutes
        self._refresh_ttl_days = refresh_ttl_days
        self._leeway_seconds = leeway_seconds

    def create_token(self, *, user_id: str, email: str, kind: TokenKind, now: datetime) -> tuple[str, datetime]:
        if kind == "access":
            exp = now + timedelta(minutes=self._access_ttl_minutes)
        elif kind == "refresh":
            exp = now + timedelta(days=self._refresh_ttl_days)
        else:
            raise ValueError(f"Unknown token kind: {kind}")

        payload = {
            "sub": user_id,
            "email": email,
            "type": kind,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "jti": secrets.token_hex(8),
        }
        token = jwt.encode(payload, self._jwt_secret, algorithm=JWT_ALGORITHM)
        return token, exp

    def create_access_token(self, *, user_id: str, email: str, now: datetime) -> tuple[str, datetime]:
        return self.create_token(user_id=user_id, email=email, kind="access", now=now)

    def decode_token(self, *, token: str, expected_kind: TokenKind = "access") -> AccessTokenPayload:
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[JWT_ALGORITHM],
                leeway=self._leeway_seconds,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expired") from exc
        except jwt.PyJWTError as exc:
            raise TokenInvalidError("Invalid token") from exc

        if payload.get("type") != expected_kind:
            raise TokenWrongTypeError("Invalid token type")

        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise TokenInvalidError("Invalid token")
        email = payload.get("email")
        if not email or not isinstance(email, str):
            raise TokenInvalidError("Invalid token")

        return AccessTokenPayload(
            user_id=user_id,
            email=email,
            kind=expected_kind,
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )

    def generate_opaque_token(self, nbytes: int = 32) -> str:
        return secrets.token_urlsafe(nbytes)

    def hash_opaque_token(self, *, value: str) -> str:
        return hashlib.sha256(value.encode("utf-8")).hexdigest()

    def refresh_session_expires_at(self, *, now: datetime) -> datetime:
        return now + timedelta(days=self._refresh_ttl_days)
