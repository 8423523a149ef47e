from __future__ import annotations

import logging

from career_auth.application.dto.users import ChangePasswordInput
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.password_hasher_port import PasswordHasherPort
from career_auth.application.services.session_manager import SessionManager
from career_auth.domain.exceptions import InvalidCredentialsError, PasswordReuseError, UserNotFoundError

from .auth_common import ensure_password_policy, utcnow


logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    def __init__(
        self,
        *,
        auth_port: AuthPort,
        password_hasher: PasswordHasherPort,
        session_manager: SessionManager,
    ):
        self._auth_port = auth_port
        self._password_hasher = password_hasher
        self._session_manager = session_manager

    def execute(self, command: ChangePasswordInput) -> int:
        user = self._auth_port.get_user_by_id(user_id=command.user_id)
        if user is None:
            raise UserNotFoundError("Unauthorized")
        if not user.password_hash or not self._password_hasher.verify(command.old_password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        ensure_password_policy(command.new_password, user.email)
        if self._password_hasher.verify(command.new_password, user.password_hash):
            raise PasswordReuseError("New password must be different from the current password.")
        password_hash = self._password_hasher.hash(command.new_password)

        def _tx(auth_port: AuthPort) -> int:
            auth_port.update_user_password_hash(user_id=user.id, password_hash=password_hash, updated_at=utcnow())
            return self._session_manager.revoke_all_sessions_for_user(user_id=user.id, auth_port=auth_port)

        revoked = self._auth_port.execute_in_transaction(_tx)
        logger.info("change_password: password_changed user_id=%s sessions_revoked=%s", user.id, revoked)
        return revoked
