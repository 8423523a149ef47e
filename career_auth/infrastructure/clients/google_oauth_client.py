from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from career_auth.application.dto.auth import OAuthProfile, OAuthTokenSet
from career_auth.application.ports.oauth_provider_port import OAuthProviderPort
from career_auth.domain.entities.user import OAuthProvider
from career_auth.domain.exceptions import OAuthProviderError


logger = logging.getLogger(__name__)


GOOGLE_AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"


@dataclass(frozen=True)
class GoogleOAuthClientSettings:
    client_id: str
    client_secret: str
    redirect_uri: str
    timeout_seconds: float


class GoogleOAuthClient(OAuthProviderPort):
    provider: OAuthProvider = "GOOGLE"

    def __init__(
        self,
        settings: GoogleOAuthClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        params = {
            "client_id": self._settings.client_id,
            "redirect_uri": self._settings.redirect_uri,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTHORIZATION_URL}?{urlencode(params)}"

    def exchange_code(self, *, code: str, code_verifier: str) -> OAuthTokenSet:
        payload = self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
                "code": code,
                "code_verifier": code_verifier,
                "grant_type": "authorization_code",
                "redirect_uri": self._settings.redirect_uri,
            },
        )
        access_token = payload.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise OAuthProviderError("Google token response has no access_token.")

        expires_in = payload.get("expires_in")
        return OAuthTokenSet(
            access_token=access_token,
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_in=int(expires_in) if expires_in is not None else None,
            id_token=payload.get("id_token"),
        )

    def fetch_profile(self, *, access_token: str) -> OAuthProfile:
        payload = self._request(
            "GET",
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        subject = payload.get("sub")
        if not subject:
            raise OAuthProviderError("Google profile has no subject.")

        email_verified_raw = payload.get("email_verified", False)
        email_verified = bool(email_verified_raw)
        if isinstance(email_verified_raw, str):
            email_verified = email_verified_raw.lower() == "true"

        name = payload.get("name") if isinstance(payload.get("name"), str) else None
        email = payload.get("email") if isinstance(payload.get("email"), str) else ""
        return OAuthProfile(
            subject=str(subject),
            email=email,
            email_verified=email_verified,
            name=name,
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            with httpx.Client(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "google_oauth_client: request_failed url=%s status=%s",
                url,
                exc.response.status_code,
            )
            raise OAuthProviderError("Google request failed.") from exc
        except httpx.HTTPError as exc:
            logger.warning("google_oauth_client: transport_error url=%s error=%s", url, type(exc).__name__)
            raise OAuthProviderError("Google request failed.") from exc
        except ValueError as exc:
            raise OAuthProviderError("Google returned an unreadable response.") from exc

        if not isinstance(payload, dict):
            raise OAuthProviderError("Google returned an unexpected response.")
        return payload
