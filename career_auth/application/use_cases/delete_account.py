from __future__ import annotations

import logging

from career_auth.application.ports.auth_port import AuthPort
from career_auth.domain.exceptions import UserNotFoundError


logger = logging.getLogger(__name__)


class DeleteAccountUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, *, user_id: str) -> None:
        deleted = self._auth_port.execute_in_transaction(lambda auth_port: auth_port.delete_user(user_id=user_id))
        if not deleted:
            raise UserNotFoundError("Unauthorized")
        logger.info("delete_account: account_deleted user_id=%s", user_id)
