from __future__ import annotations

import logging
from typing import Mapping
from uuid import uuid4

from career_auth.application.dto.auth import AuthTokensOutput, CompleteOAuthInput, OAuthProfile
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.oauth_provider_port import OAuthProviderPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.application.services.session_manager import SessionManager
from career_auth.domain.entities.user import OAuthProvider, User
from career_auth.domain.exceptions import OAuthProfileError

from .auth_common import build_tokens_output, normalize_email, utcnow
from .oauth_common import resolve_oauth_provider, select_oauth_client


logger = logging.getLogger(__name__)


class CompleteOAuthUseCase:
    """Turns an authorization code into a signed-in local account.

    The provider identity resolves to a local user in this order: an existing
    link for ``(provider, subject)``, an existing user with the same email
    (a link is added), or a brand new password-less user plus link.
    """

    def __init__(
        self,
        *,
        auth_port: AuthPort,
        providers: Mapping[OAuthProvider, OAuthProviderPort],
        token_port: TokenPort,
        session_manager: SessionManager,
    ):
        self._auth_port = auth_port
        self._providers = providers
        self._token_port = token_port
        self._session_manager = session_manager

    def execute(self, command: CompleteOAuthInput) -> AuthTokensOutput:
        provider = resolve_oauth_provider(command.provider)
        client = select_oauth_client(self._providers, command.provider)

        token_set = client.exchange_code(code=command.code, code_verifier=command.code_verifier)
        profile = client.fetch_profile(access_token=token_set.access_token)
        email = normalize_email(profile.email or "")
        if not profile.subject or not email:
            raise OAuthProfileError("Provider profile has no email.")
        if not profile.email_verified:
            raise OAuthProfileError("Provider email is not verified.")

        user = self._auth_port.execute_in_transaction(
            lambda auth_port: self._resolve_user(auth_port, provider=provider, profile=profile, email=email)
        )

        now = utcnow()
        if user.email_verified_at is None:
            self._auth_port.mark_user_email_verified(user_id=user.id, verified_at=now)
        if not user.is_active:
            self._auth_port.update_user_is_active(user_id=user.id, is_active=True, updated_at=now)
        if user.email_verified_at is None or not user.is_active:
            user = self._auth_port.get_user_by_id(user_id=user.id) or user

        session = self._session_manager.create_session(
            user_id=user.id,
            user_agent=command.user_agent,
            ip=command.ip,
        )
        return build_tokens_output(user=user, session=session, token_port=self._token_port)

    def _resolve_user(
        self,
        auth_port: AuthPort,
        *,
        provider: OAuthProvider,
        profile: OAuthProfile,
        email: str,
    ) -> User:
        now = utcnow()
        linked = auth_port.get_oauth_account(provider=provider, provider_account_id=profile.subject)
        if linked is not None:
            user = auth_port.get_user_by_id(user_id=linked.user_id)
            if user is None:
                raise OAuthProfileError("Linked account no longer exists.")
            logger.info("complete_oauth: existing_link provider=%s user_id=%s", provider, user.id)
            return user

        user = auth_port.get_user_by_email(email=email)
        if user is None:
            name = (profile.name or "").strip() or email.split("@")[0]
            user = auth_port.create_user(
                user_id=str(uuid4()),
                name=name,
                email=email,
                password_hash=None,
                email_verified_at=now,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            logger.info("complete_oauth: user_created provider=%s user_id=%s", provider, user.id)
        else:
            logger.info("complete_oauth: linked_by_email provider=%s user_id=%s", provider, user.id)

        auth_port.create_oauth_account(
            account_id=str(uuid4()),
            user_id=user.id,
            provider=provider,
            provider_account_id=profile.subject,
            created_at=now,
        )
        return user
