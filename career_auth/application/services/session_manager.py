from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from career_auth.application.dto.auth import IssuedSession
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.application.use_cases.auth_common import utcnow
from career_auth.domain.entities.user import User
from career_auth.domain.exceptions import InvalidSessionError


logger = logging.getLogger(__name__)

REFRESH_TOKEN_NBYTES = 48
CSRF_TOKEN_NBYTES = 32


@dataclass(frozen=True)
class RotatedSession:
    user: User
    previous_session_id: str
    session: IssuedSession


class SessionManager:
    """Only component that writes ``auth_sessions`` rows.

    Raw refresh and CSRF values leave this class exactly once, in the
    ``IssuedSession`` returned to the caller; only their hashes are stored.
    """

    def __init__(self, *, auth_port: AuthPort, token_port: TokenPort):
        self._auth_port = auth_port
        self._token_port = token_port

    def create_session(
        self,
        *,
        user_id: str,
        user_agent: str | None = None,
        ip: str | None = None,
        auth_port: AuthPort | None = None,
    ) -> IssuedSession:
        """Persist a new live session.

        Pass ``auth_port`` to write through a repository already bound to an
        open transaction.
        """
        issued = self._insert_session(
            auth_port or self._auth_port,
            user_id=user_id,
            user_agent=user_agent,
            ip=ip,
            now=utcnow(),
        )
        logger.info("session_manager: session_created user_id=%s session_id=%s", user_id, issued.session_id)
        return issued

    def rotate_session(
        self,
        *,
        refresh_token: str,
        csrf_token: str,
        user_agent: str | None = None,
        ip: str | None = None,
    ) -> RotatedSession:
        refresh_token = refresh_token.strip()
        csrf_token = csrf_token.strip()
        if not refresh_token or not csrf_token:
            raise InvalidSessionError("Invalid session")

        refresh_hash = self._token_port.hash_opaque_token(value=refresh_token)
        csrf_hash = self._token_port.hash_opaque_token(value=csrf_token)

        def _tx(auth_port: AuthPort) -> RotatedSession:
            now = utcnow()
            consumed = auth_port.revoke_live_session(
                refresh_token_hash=refresh_hash,
                csrf_token_hash=csrf_hash,
                revoked_at=now,
            )
            if consumed is None:
                raise InvalidSessionError("Invalid session")

            user = auth_port.get_user_by_id(user_id=consumed.user_id)
            if user is None or not user.is_active:
                raise InvalidSessionError("Invalid session")

            issued = self._insert_session(
                auth_port,
                user_id=user.id,
                user_agent=user_agent,
                ip=ip,
                now=now,
            )
            return RotatedSession(user=user, previous_session_id=consumed.id, session=issued)

        rotated = self._auth_port.execute_in_transaction(_tx)
        logger.info(
            "session_manager: session_rotated user_id=%s old_session_id=%s new_session_id=%s",
            rotated.user.id,
            rotated.previous_session_id,
            rotated.session.session_id,
        )
        return rotated

    def reissue_csrf_token(self, *, refresh_token: str) -> str | None:
        refresh_token = refresh_token.strip()
        if not refresh_token:
            return None

        csrf_token = self._token_port.generate_opaque_token(CSRF_TOKEN_NBYTES)
        updated = self._auth_port.update_session_csrf_token_hash(
            refresh_token_hash=self._token_port.hash_opaque_token(value=refresh_token),
            csrf_token_hash=self._token_port.hash_opaque_token(value=csrf_token),
            used_at=utcnow(),
        )
        if not updated:
            return None
        return csrf_token

    def revoke_session(self, *, session_id: str) -> bool:
        revoked = self._auth_port.revoke_session(session_id=session_id, revoked_at=utcnow())
        logger.info("session_manager: session_revoked session_id=%s changed=%s", session_id, revoked)
        return revoked

    def revoke_by_refresh_token(self, *, refresh_token: str, csrf_token: str) -> bool:
        refresh_token = refresh_token.strip()
        csrf_token = csrf_token.strip()
        if not refresh_token or not csrf_token:
            return False

        revoked = self._auth_port.revoke_live_session(
            refresh_token_hash=self._token_port.hash_opaque_token(value=refresh_token),
            csrf_token_hash=self._token_port.hash_opaque_token(value=csrf_token),
            revoked_at=utcnow(),
        )
        if revoked is None:
            return False
        logger.info("session_manager: session_revoked session_id=%s user_id=%s", revoked.id, revoked.user_id)
        return True

    def revoke_all_sessions_for_user(self, *, user_id: str, auth_port: AuthPort | None = None) -> int:
        count = (auth_port or self._auth_port).revoke_sessions_for_user(user_id=user_id, revoked_at=utcnow())
        logger.info("session_manager: sessions_revoked_for_user user_id=%s count=%s", user_id, count)
        return count

    def purge_revoked_sessions(self, *, older_than: datetime) -> int:
        deleted = self._auth_port.delete_sessions_inactive_before(cutoff=older_than)
        logger.info("session_manager: sessions_purged cutoff=%s deleted=%s", older_than.isoformat(), deleted)
        return deleted

    def _insert_session(
        self,
        auth_port: AuthPort,
        *,
        user_id: str,
        user_agent: str | None,
        ip: str | None,
        now: datetime,
    ) -> IssuedSession:
        refresh_token = self._token_port.generate_opaque_token(REFRESH_TOKEN_NBYTES)
        csrf_token = self._token_port.generate_opaque_token(CSRF_TOKEN_NBYTES)
        expires_at = self._token_port.refresh_session_expires_at(now=now)
        session = auth_port.create_session(
            session_id=str(uuid4()),
            user_id=user_id,
            refresh_token_hash=self._token_port.hash_opaque_token(value=refresh_token),
            csrf_token_hash=self._token_port.hash_opaque_token(value=csrf_token),
            expires_at=expires_at,
            user_agent=user_agent,
            ip=ip,
            created_at=now,
        )
        return IssuedSession(
            session_id=session.id,
            refresh_token=refresh_token,
            csrf_token=csrf_token,
            expires_at=session.expires_at,
        )
