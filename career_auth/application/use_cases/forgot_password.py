from __future__ import annotations

import logging
from datetime import timedelta

from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.email_port import EmailPort
from career_auth.application.ports.token_port import TokenPort

from .auth_common import build_frontend_link, issue_user_token, normalize_email


logger = logging.getLogger(__name__)


class ForgotPasswordUseCase:
    def __init__(
        self,
        *,
        auth_port: AuthPort,
        token_port: TokenPort,
        email_port: EmailPort,
        frontend_url: str,
        reset_token_ttl: timedelta,
    ):
        self._auth_port = auth_port
        self._token_port = token_port
        self._email_port = email_port
        self._frontend_url = frontend_url
        self._reset_token_ttl = reset_token_ttl

    def execute(self, *, email: str) -> None:
        # same outcome for unknown emails and oauth-only accounts
        user = self._auth_port.get_user_by_email(email=normalize_email(email))
        if user is None or not user.password_hash:
            return

        raw_token = self._auth_port.execute_in_transaction(
            lambda auth_port: issue_user_token(
                auth_port=auth_port,
                token_port=self._token_port,
                user_id=user.id,
                kind="reset_password",
                ttl=self._reset_token_ttl,
            )
        )
        self._email_port.send_password_reset_email(
            to=user.email,
            name=user.name,
            reset_url=build_frontend_link(self._frontend_url, "/reset-password", raw_token),
        )
        logger.info("forgot_password: reset_sent user_id=%s", user.id)
