from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from uuid import uuid4

from career_auth.application.dto.auth import AuthTokensOutput, IssuedSession, RegisterUserInput
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.email_port import EmailPort
from career_auth.application.ports.password_hasher_port import PasswordHasherPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.application.services.session_manager import SessionManager
from career_auth.domain.entities.user import User
from career_auth.domain.exceptions import EmailAlreadyExistsError

from .auth_common import (
    build_frontend_link,
    build_tokens_output,
    ensure_password_policy,
    issue_user_token,
    normalize_email,
    utcnow,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Registered:
    user: User
    session: IssuedSession
    verify_token: str


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        auth_port: AuthPort,
        password_hasher: PasswordHasherPort,
        token_port: TokenPort,
        session_manager: SessionManager,
        email_port: EmailPort,
        frontend_url: str,
        verify_token_ttl: timedelta,
    ):
        self._auth_port = auth_port
        self._password_hasher = password_hasher
        self._token_port = token_port
        self._session_manager = session_manager
        self._email_port = email_port
        self._frontend_url = frontend_url
        self._verify_token_ttl = verify_token_ttl

    def execute(self, command: RegisterUserInput) -> AuthTokensOutput:
        name = command.name.strip()
        email = normalize_email(command.email)
        password = command.password

        if not name:
            raise ValueError("name is required.")
        if not email or "@" not in email:
            raise ValueError("email is required.")
        ensure_password_policy(password, email)

        password_hash = self._password_hasher.hash(password)

        def _tx(auth_port: AuthPort) -> _Registered:
            if auth_port.get_user_by_email(email=email) is not None:
                raise EmailAlreadyExistsError("Email already in use")

            now = utcnow()
            user = auth_port.create_user(
                user_id=str(uuid4()),
                name=name,
                email=email,
                password_hash=password_hash,
                email_verified_at=None,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            session = self._session_manager.create_session(
                user_id=user.id,
                user_agent=command.user_agent,
                ip=command.ip,
                auth_port=auth_port,
            )
            verify_token = issue_user_token(
                auth_port=auth_port,
                token_port=self._token_port,
                user_id=user.id,
                kind="verify_email",
                ttl=self._verify_token_ttl,
            )
            return _Registered(user=user, session=session, verify_token=verify_token)

        registered = self._auth_port.execute_in_transaction(_tx)
        logger.info("register_user: user_registered user_id=%s", registered.user.id)

        try:
            self._email_port.send_verification_email(
                to=registered.user.email,
                name=registered.user.name,
                verify_url=build_frontend_link(self._frontend_url, "/verify-email", registered.verify_token),
            )
        except Exception:
            # the account exists either way; the user can ask for a resend
            logger.warning(
                "register_user: verification_email_failed user_id=%s",
                registered.user.id,
                exc_info=True,
            )

        return build_tokens_output(
            user=registered.user,
            session=registered.session,
            token_port=self._token_port,
        )
