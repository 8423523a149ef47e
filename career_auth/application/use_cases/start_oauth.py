from __future__ import annotations

from typing import Mapping

from career_auth.application.dto.auth import StartOAuthOutput
from career_auth.application.ports.oauth_provider_port import OAuthProviderPort
from career_auth.domain.entities.user import OAuthProvider
from career_auth.domain.services.pkce import begin_flow

from .oauth_common import select_oauth_client


class StartOAuthUseCase:
    def __init__(self, *, providers: Mapping[OAuthProvider, OAuthProviderPort]):
        self._providers = providers

    def execute(self, *, provider: str) -> StartOAuthOutput:
        client = select_oauth_client(self._providers, provider)
        correlation = begin_flow()
        authorization_url = client.build_authorization_url(
            state=correlation.state,
            code_challenge=correlation.code_challenge,
        )
        return StartOAuthOutput(authorization_url=authorization_url, correlation=correlation)
