from __future__ import annotations

from datetime import timedelta

from career_auth.application.services.session_manager import SessionManager

from .auth_common import utcnow


class PurgeRevokedSessionsUseCase:
    """Deletes session rows that were revoked or expired before ``now - older_than``."""

    def __init__(self, *, session_manager: SessionManager):
        self._session_manager = session_manager

    def execute(self, *, older_than: timedelta) -> int:
        if older_than < timedelta(0):
            raise ValueError("older_than must not be negative.")
        return self._session_manager.purge_revoked_sessions(older_than=utcnow() - older_than)
