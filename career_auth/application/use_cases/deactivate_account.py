from __future__ import annotations

import logging

from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.services.session_manager import SessionManager

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class DeactivateAccountUseCase:
    """Switches the account off; a later password login switches it back on."""

    def __init__(self, *, auth_port: AuthPort, session_manager: SessionManager):
        self._auth_port = auth_port
        self._session_manager = session_manager

    def execute(self, *, user_id: str) -> int:
        def _tx(auth_port: AuthPort) -> int:
            auth_port.update_user_is_active(user_id=user_id, is_active=False, updated_at=utcnow())
            return self._session_manager.revoke_all_sessions_for_user(user_id=user_id, auth_port=auth_port)

        revoked = self._auth_port.execute_in_transaction(_tx)
        logger.info("deactivate_account: account_deactivated user_id=%s sessions_revoked=%s", user_id, revoked)
        return revoked
