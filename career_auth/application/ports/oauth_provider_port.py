from __future__ import annotations

from typing import Protocol

from career_auth.application.dto.auth import OAuthProfile, OAuthTokenSet
from career_auth.domain.entities.user import OAuthProvider


class OAuthProviderPort(Protocol):
    provider: OAuthProvider

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        ...

    def exchange_code(self, *, code: str, code_verifier: str) -> OAuthTokenSet:
        ...

    def fetch_profile(self, *, access_token: str) -> OAuthProfile:
        ...
