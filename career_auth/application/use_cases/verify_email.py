from __future__ import annotations

import logging

from career_auth.application.dto.auth import VerifyEmailInput
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.domain.exceptions import InvalidOneTimeTokenError

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class VerifyEmailUseCase:
    def __init__(self, *, auth_port: AuthPort, token_port: TokenPort):
        self._auth_port = auth_port
        self._token_port = token_port

    def execute(self, command: VerifyEmailInput) -> str:
        raw_token = command.token.strip()
        if not raw_token:
            raise InvalidOneTimeTokenError("Invalid or expired token")
        token_hash = self._token_port.hash_opaque_token(value=raw_token)

        def _tx(auth_port: AuthPort) -> str:
            now = utcnow()
            token = auth_port.get_active_user_token(token_hash=token_hash, kind="verify_email", now=now)
            if token is None or not auth_port.consume_user_token(token_id=token.id, used_at=now):
                raise InvalidOneTimeTokenError("Invalid or expired token")
            user = auth_port.get_user_by_id(user_id=token.user_id)
            if user is None:
                raise InvalidOneTimeTokenError("Invalid or expired token")
            if user.email_verified_at is None:
                auth_port.mark_user_email_verified(user_id=user.id, verified_at=now)
            return user.id

        user_id = self._auth_port.execute_in_transaction(_tx)
        logger.info("verify_email: email_verified user_id=%s", user_id)
        return user_id
