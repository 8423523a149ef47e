from __future__ import annotations

from typing import Mapping

from career_auth.application.ports.oauth_provider_port import OAuthProviderPort
from career_auth.domain.entities.user import OAuthProvider
from career_auth.domain.exceptions import OAuthNotConfiguredError, OAuthProviderNotSupportedError


SUPPORTED_OAUTH_PROVIDERS: dict[str, OAuthProvider] = {"google": "GOOGLE"}


def resolve_oauth_provider(provider: str) -> OAuthProvider:
    resolved = SUPPORTED_OAUTH_PROVIDERS.get(provider.strip().lower())
    if resolved is None:
        raise OAuthProviderNotSupportedError("OAuth provider not supported")
    return resolved


def select_oauth_client(
    providers: Mapping[OAuthProvider, OAuthProviderPort],
    provider: str,
) -> OAuthProviderPort:
    resolved = resolve_oauth_provider(provider)
    client = providers.get(resolved)
    if client is None:
        raise OAuthNotConfiguredError(f"{resolved.title()} OAuth is not configured on the server.")
    return client
