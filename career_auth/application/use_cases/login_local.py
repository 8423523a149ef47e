from __future__ import annotations

import logging

from career_auth.application.dto.auth import AuthTokensOutput, LoginLocalInput
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.password_hasher_port import PasswordHasherPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.application.services.session_manager import SessionManager
from career_auth.domain.exceptions import InvalidCredentialsError

from .auth_common import build_tokens_output, normalize_email, utcnow


logger = logging.getLogger(__name__)


class LoginLocalUseCase:
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

    def execute(self, command: LoginLocalInput) -> AuthTokensOutput:
        email = normalize_email(command.email)
        user = self._auth_port.get_user_by_email(email=email)
        if user is None or not user.password_hash:
            self._password_hasher.dummy_verify()
            raise InvalidCredentialsError("Invalid credentials")
        if not self._password_hasher.verify(command.password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        if self._password_hasher.needs_rehash(user.password_hash):
            self._auth_port.update_user_password_hash(
                user_id=user.id,
                password_hash=self._password_hasher.hash(command.password),
                updated_at=utcnow(),
            )
            logger.info("login_local: password_rehashed user_id=%s", user.id)

        if not user.is_active:
            self._auth_port.update_user_is_active(user_id=user.id, is_active=True, updated_at=utcnow())
            user = self._auth_port.get_user_by_id(user_id=user.id) or user
            logger.info("login_local: account_reactivated user_id=%s", user.id)

        session = self._session_manager.create_session(
            user_id=user.id,
            user_agent=command.user_agent,
            ip=command.ip,
        )
        return build_tokens_output(user=user, session=session, token_port=self._token_port)
