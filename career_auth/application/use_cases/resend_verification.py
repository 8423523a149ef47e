from __future__ import annotations

import logging
from datetime import timedelta

from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.email_port import EmailPort
from career_auth.application.ports.token_port import TokenPort

from .auth_common import build_frontend_link, issue_user_token, normalize_email


logger = logging.getLogger(__name__)


class ResendVerificationUseCase:
    """Silently does nothing for unknown, verified or deactivated accounts."""

    def __init__(
        self,
        *,
        auth_port: AuthPort,
        token_port: TokenPort,
        email_port: EmailPort,
        frontend_url: str,
        verify_token_ttl: timedelta,
    ):
        self._auth_port = auth_port
        self._token_port = token_port
        self._email_port = email_port
        self._frontend_url = frontend_url
        self._verify_token_ttl = verify_token_ttl

    def execute(self, *, email: str) -> None:
        user = self._auth_port.get_user_by_email(email=normalize_email(email))
        if user is None or user.email_verified or not user.is_active:
            return

        raw_token = self._auth_port.execute_in_transaction(
            lambda auth_port: issue_user_token(
                auth_port=auth_port,
                token_port=self._token_port,
                user_id=user.id,
                kind="verify_email",
                ttl=self._verify_token_ttl,
            )
        )
        self._email_port.send_verification_email(
            to=user.email,
            name=user.name,
            verify_url=build_frontend_link(self._frontend_url, "/verify-email", raw_token),
        )
        logger.info("resend_verification: verification_sent user_id=%s", user.id)
