from __future__ import annotations

from career_auth.application.dto.auth import AuthTokensOutput, RefreshSessionInput
from career_auth.application.ports.token_port import TokenPort
from career_auth.application.services.session_manager import SessionManager

from .auth_common import build_tokens_output


class RefreshSessionUseCase:
    def __init__(self, *, session_manager: SessionManager, token_port: TokenPort):
        self._session_manager = session_manager
        self._token_port = token_port

    def execute(self, command: RefreshSessionInput) -> AuthTokensOutput:
        rotated = self._session_manager.rotate_session(
            refresh_token=command.refresh_token,
            csrf_token=command.csrf_token,
            user_agent=command.user_agent,
            ip=command.ip,
        )
        return build_tokens_output(
            user=rotated.user,
            session=rotated.session,
            token_port=self._token_port,
        )
