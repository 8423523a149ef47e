from __future__ import annotations

from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.services.session_manager import SessionManager
from career_auth.domain.exceptions import UserNotFoundError


class RevokeUserSessionsUseCase:
    def __init__(self, *, auth_port: AuthPort, session_manager: SessionManager):
        self._auth_port = auth_port
        self._session_manager = session_manager

    def execute(self, *, user_id: str) -> int:
        if self._auth_port.get_user_by_id(user_id=user_id) is None:
            raise UserNotFoundError("User not found")
        return self._session_manager.revoke_all_sessions_for_user(user_id=user_id)
