from __future__ import annotations

import logging

from career_auth.application.dto.auth import ResetPasswordInput
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.password_hasher_port import PasswordHasherPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.application.services.session_manager import SessionManager
from career_auth.domain.exceptions import InvalidOneTimeTokenError, PasswordReuseError

from .auth_common import ensure_password_policy, utcnow


logger = logging.getLogger(__name__)


class ResetPasswordUseCase:
    """Sets a new password from an emailed reset token and signs out every device.

    The token is only consumed once the new password has been accepted, so a
    rejected password leaves the link usable.
    """

    def __init__(
        self,
        *,
        auth_port: AuthPort,
        password_hasher: PasswordHasherPort,
        token_port: TokenPort,
        session_manager: SessionManager,
    ):
        self._auth_port = auth_port
        self._password_hasher = password_hasher
        self._token_port = token_port
        self._session_manager = session_manager

    def execute(self, command: ResetPasswordInput) -> None:
        raw_token = command.token.strip()
        if not raw_token:
            raise InvalidOneTimeTokenError("Invalid or expired token")
        token_hash = self._token_port.hash_opaque_token(value=raw_token)

        token = self._auth_port.get_active_user_token(token_hash=token_hash, kind="reset_password", now=utcnow())
        if token is None:
            raise InvalidOneTimeTokenError("Invalid or expired token")
        user = self._auth_port.get_user_by_id(user_id=token.user_id)
        if user is None:
            raise InvalidOneTimeTokenError("Invalid or expired token")

        ensure_password_policy(command.new_password, user.email)
        if user.password_hash and self._password_hasher.verify(command.new_password, user.password_hash):
            raise PasswordReuseError("New password must be different from the current password.")
        password_hash = self._password_hasher.hash(command.new_password)

        def _tx(auth_port: AuthPort) -> int:
            now = utcnow()
            if not auth_port.consume_user_token(token_id=token.id, used_at=now):
                raise InvalidOneTimeTokenError("Invalid or expired token")
            auth_port.update_user_password_hash(user_id=user.id, password_hash=password_hash, updated_at=now)
            return self._session_manager.revoke_all_sessions_for_user(user_id=user.id, auth_port=auth_port)

        revoked = self._auth_port.execute_in_transaction(_tx)
        logger.info("reset_password: password_reset user_id=%s sessions_revoked=%s", user.id, revoked)
