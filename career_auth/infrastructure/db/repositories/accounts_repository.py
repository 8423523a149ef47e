from __future__ import annotations

from contextlib import nullcontext
from datetime import datetime
from typing import Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from career_auth.application.ports.auth_port import AuthPort
from career_auth.domain.exceptions import EmailAlreadyExistsError
from career_auth.infrastructure.db.mappers.accounts_mapper import (
    map_row_to_auth_session,
    map_row_to_oauth_account,
    map_row_to_user,
    map_row_to_user_token,
)


T = TypeVar("T")

USER_COLUMNS = """
    id, name, email, password_hash, email_verified_at, is_active, is_admin,
    ai_free_uses_used, created_at, updated_at
"""
SESSION_COLUMNS = """
    id, user_id, refresh_token_hash, csrf_token_hash, expires_at, revoked_at,
    last_used_at, user_agent, ip, created_at
"""
OAUTH_ACCOUNT_COLUMNS = "id, user_id, provider, provider_account_id, created_at"
USER_TOKEN_COLUMNS = "id, user_id, kind, token_hash, expires_at, used_at, created_at"


class SqlAccountsRepository(AuthPort):
    """Credential store over plain SQL.

    A repository built with ``connection`` runs every statement on that
    connection and leaves commit/rollback to whoever opened it; see
    ``execute_in_transaction``.
    """

    def __init__(self, engine, *, connection=None):
        self._engine = engine
        self._connection = connection

    def _read(self):
        if self._connection is not None:
            return nullcontext(self._connection)
        return self._engine.connect()

    def _write(self):
        if self._connection is not None:
            return nullcontext(self._connection)
        return self._engine.begin()

    def execute_in_transaction(self, fn: Callable[[AuthPort], T]) -> T:
        if self._connection is not None:
            return fn(self)
        with self._engine.begin() as conn:
            return fn(SqlAccountsRepository(self._engine, connection=conn))

    def get_user_by_id(self, *, user_id: str):
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM users
            WHERE id = :user_id
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(text(sql), {"user_id": user_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def get_user_by_email(self, *, email: str):
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM users
            WHERE lower(email) = :email
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(text(sql), {"email": email.strip().lower()}).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

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
    ):
        sql = f"""
            INSERT INTO users (
                id, name, email, password_hash, email_verified_at, is_active, created_at, updated_at
            ) VALUES (
                :id, :name, :email, :password_hash, :email_verified_at, :is_active, :created_at, :updated_at
            )
            RETURNING {USER_COLUMNS}
        """
        params = {
            "id": user_id,
            "name": name,
            "email": email,
            "password_hash": password_hash,
            "email_verified_at": email_verified_at,
            "is_active": is_active,
            "created_at": created_at,
            "updated_at": updated_at,
        }
        try:
            with self._write() as conn:
                row = conn.execute(text(sql), params).mappings().one()
        except IntegrityError as exc:
            # a concurrent registration won the users.email unique index
            if "email" in str(exc.orig):
                raise EmailAlreadyExistsError("Email already in use") from exc
            raise
        return map_row_to_user(row)

    def update_user_password_hash(self, *, user_id: str, password_hash: str, updated_at: datetime) -> None:
        sql = """
            UPDATE users
            SET password_hash = :password_hash,
                updated_at = :updated_at
            WHERE id = :user_id
        """
        with self._write() as conn:
            conn.execute(
                text(sql),
                {"user_id": user_id, "password_hash": password_hash, "updated_at": updated_at},
            )

    def mark_user_email_verified(self, *, user_id: str, verified_at: datetime) -> None:
        sql = """
            UPDATE users
            SET email_verified_at = :verified_at,
                updated_at = :verified_at
            WHERE id = :user_id
              AND email_verified_at IS NULL
        """
        with self._write() as conn:
            conn.execute(text(sql), {"user_id": user_id, "verified_at": verified_at})

    def update_user_is_active(self, *, user_id: str, is_active: bool, updated_at: datetime) -> None:
        sql = """
            UPDATE users
            SET is_active = :is_active,
                updated_at = :updated_at
            WHERE id = :user_id
        """
        with self._write() as conn:
            conn.execute(
                text(sql),
                {"user_id": user_id, "is_active": is_active, "updated_at": updated_at},
            )

    def update_user_name(self, *, user_id: str, name: str, updated_at: datetime):
        sql = f"""
            UPDATE users
            SET name = :name,
                updated_at = :updated_at
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(
                text(sql),
                {"user_id": user_id, "name": name, "updated_at": updated_at},
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def delete_user(self, *, user_id: str) -> bool:
        params = {"user_id": user_id}
        with self._write() as conn:
            conn.execute(text("DELETE FROM auth_sessions WHERE user_id = :user_id"), params)
            conn.execute(text("DELETE FROM oauth_accounts WHERE user_id = :user_id"), params)
            conn.execute(text("DELETE FROM user_tokens WHERE user_id = :user_id"), params)
            result = conn.execute(text("DELETE FROM users WHERE id = :user_id"), params)
        return bool(result.rowcount)

    def create_oauth_account(
        self,
        *,
        account_id: str,
        user_id: str,
        provider: str,
        provider_account_id: str,
        created_at: datetime,
    ):
        sql = f"""
            INSERT INTO oauth_accounts (
                id, user_id, provider, provider_account_id, created_at
            ) VALUES (
                :id, :user_id, :provider, :provider_account_id, :created_at
            )
            RETURNING {OAUTH_ACCOUNT_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(
                text(sql),
                {
                    "id": account_id,
                    "user_id": user_id,
                    "provider": provider,
                    "provider_account_id": provider_account_id,
                    "created_at": created_at,
                },
            ).mappings().one()
        return map_row_to_oauth_account(row)

    def get_oauth_account(self, *, provider: str, provider_account_id: str):
        sql = f"""
            SELECT {OAUTH_ACCOUNT_COLUMNS}
            FROM oauth_accounts
            WHERE provider = :provider
              AND provider_account_id = :provider_account_id
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(
                text(sql),
                {"provider": provider, "provider_account_id": provider_account_id},
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_oauth_account(row)

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
    ):
        sql = f"""
            INSERT INTO auth_sessions (
                id, user_id, refresh_token_hash, csrf_token_hash, expires_at, user_agent, ip, created_at
            ) VALUES (
                :id, :user_id, :refresh_token_hash, :csrf_token_hash, :expires_at, :user_agent, :ip, :created_at
            )
            RETURNING {SESSION_COLUMNS}
        """
        params = {
            "id": session_id,
            "user_id": user_id,
            "refresh_token_hash": refresh_token_hash,
            "csrf_token_hash": csrf_token_hash,
            "expires_at": expires_at,
            "user_agent": user_agent,
            "ip": ip,
            "created_at": created_at,
        }
        with self._write() as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_auth_session(row)

    def get_session_by_refresh_token_hash(self, *, refresh_token_hash: str):
        sql = f"""
            SELECT {SESSION_COLUMNS}
            FROM auth_sessions
            WHERE refresh_token_hash = :refresh_token_hash
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(text(sql), {"refresh_token_hash": refresh_token_hash}).mappings().first()
        if row is None:
            return None
        return map_row_to_auth_session(row)

    def revoke_live_session(
        self,
        *,
        refresh_token_hash: str,
        csrf_token_hash: str,
        revoked_at: datetime,
    ):
        # single statement: of two concurrent callers only one sees the row
        sql = f"""
            UPDATE auth_sessions
            SET revoked_at = :revoked_at,
                last_used_at = :revoked_at
            WHERE refresh_token_hash = :refresh_token_hash
              AND csrf_token_hash = :csrf_token_hash
              AND revoked_at IS NULL
              AND expires_at > :revoked_at
            RETURNING {SESSION_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(
                text(sql),
                {
                    "refresh_token_hash": refresh_token_hash,
                    "csrf_token_hash": csrf_token_hash,
                    "revoked_at": revoked_at,
                },
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_auth_session(row)

    def revoke_session(self, *, session_id: str, revoked_at: datetime) -> bool:
        sql = """
            UPDATE auth_sessions
            SET revoked_at = :revoked_at
            WHERE id = :session_id
              AND revoked_at IS NULL
        """
        with self._write() as conn:
            result = conn.execute(text(sql), {"session_id": session_id, "revoked_at": revoked_at})
        return bool(result.rowcount)

    def revoke_sessions_for_user(self, *, user_id: str, revoked_at: datetime) -> int:
        sql = """
            UPDATE auth_sessions
            SET revoked_at = :revoked_at
            WHERE user_id = :user_id
              AND revoked_at IS NULL
        """
        with self._write() as conn:
            result = conn.execute(text(sql), {"user_id": user_id, "revoked_at": revoked_at})
        return int(result.rowcount or 0)

    def update_session_csrf_token_hash(
        self,
        *,
        refresh_token_hash: str,
        csrf_token_hash: str,
        used_at: datetime,
    ) -> bool:
        sql = """
            UPDATE auth_sessions
            SET csrf_token_hash = :csrf_token_hash,
                last_used_at = :used_at
            WHERE refresh_token_hash = :refresh_token_hash
              AND revoked_at IS NULL
              AND expires_at > :used_at
        """
        with self._write() as conn:
            result = conn.execute(
                text(sql),
                {
                    "refresh_token_hash": refresh_token_hash,
                    "csrf_token_hash": csrf_token_hash,
                    "used_at": used_at,
                },
            )
        return bool(result.rowcount)

    def delete_sessions_inactive_before(self, *, cutoff: datetime) -> int:
        sql = """
            DELETE FROM auth_sessions
            WHERE (revoked_at IS NOT NULL AND revoked_at < :cutoff)
               OR expires_at < :cutoff
        """
        with self._write() as conn:
            result = conn.execute(text(sql), {"cutoff": cutoff})
        return int(result.rowcount or 0)

    def create_user_token(
        self,
        *,
        token_id: str,
        user_id: str,
        kind: str,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ):
        sql = f"""
            INSERT INTO user_tokens (
                id, user_id, kind, token_hash, expires_at, created_at
            ) VALUES (
                :id, :user_id, :kind, :token_hash, :expires_at, :created_at
            )
            RETURNING {USER_TOKEN_COLUMNS}
        """
        with self._write() as conn:
            row = conn.execute(
                text(sql),
                {
                    "id": token_id,
                    "user_id": user_id,
                    "kind": kind,
                    "token_hash": token_hash,
                    "expires_at": expires_at,
                    "created_at": created_at,
                },
            ).mappings().one()
        return map_row_to_user_token(row)

    def invalidate_user_tokens(self, *, user_id: str, kind: str, used_at: datetime) -> int:
        sql = """
            UPDATE user_tokens
            SET used_at = :used_at
            WHERE user_id = :user_id
              AND kind = :kind
              AND used_at IS NULL
        """
        with self._write() as conn:
            result = conn.execute(text(sql), {"user_id": user_id, "kind": kind, "used_at": used_at})
        return int(result.rowcount or 0)

    def get_active_user_token(self, *, token_hash: str, kind: str, now: datetime):
        sql = f"""
            SELECT {USER_TOKEN_COLUMNS}
            FROM user_tokens
            WHERE token_hash = :token_hash
              AND kind = :kind
              AND used_at IS NULL
              AND expires_at > :now
            LIMIT 1
        """
        with self._read() as conn:
            row = conn.execute(
                text(sql),
                {"token_hash": token_hash, "kind": kind, "now": now},
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_user_token(row)

    def consume_user_token(self, *, token_id: str, used_at: datetime) -> bool:
        sql = """
            UPDATE user_tokens
            SET used_at = :used_at
            WHERE id = :token_id
              AND used_at IS NULL
        """
        with self._write() as conn:
            result = conn.execute(text(sql), {"token_id": token_id, "used_at": used_at})
        return bool(result.rowcount)
