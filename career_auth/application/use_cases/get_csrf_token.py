from __future__ import annotations

from career_auth.application.services.session_manager import SessionManager


class GetCsrfTokenUseCase:
    """Hands a fresh CSRF value to a browser that still holds a live refresh cookie."""

    def __init__(self, *, session_manager: SessionManager):
        self._session_manager = session_manager

    def execute(self, *, refresh_token: str | None) -> str | None:
        if not refresh_token:
            return None
        return self._session_manager.reissue_csrf_token(refresh_token=refresh_token)
