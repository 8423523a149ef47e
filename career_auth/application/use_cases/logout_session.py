from __future__ import annotations

from career_auth.application.dto.auth import LogoutInput
from career_auth.application.services.session_manager import SessionManager


class LogoutSessionUseCase:
    def __init__(self, *, session_manager: SessionManager):
        self._session_manager = session_manager

    def execute(self, command: LogoutInput) -> bool:
        return self._session_manager.revoke_by_refresh_token(
            refresh_token=command.refresh_token,
            csrf_token=command.csrf_token,
        )
