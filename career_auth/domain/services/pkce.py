from __future__ import annotations

import base64
import hashlib
import secrets

from career_auth.domain.entities.oauth import OAUTH_CORRELATION_TTL_SECONDS, OAuthCorrelation


STATE_NBYTES = 24
VERIFIER_NBYTES = 48


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def create_oauth_state() -> str:
    return _b64url(secrets.token_bytes(STATE_NBYTES))


def code_challenge_for(code_verifier: str) -> str:
    # RFC 7636 S256
    return _b64url(hashlib.sha256(code_verifier.encode("ascii")).digest())


def create_pkce_pair() -> tuple[str, str]:
    code_verifier = _b64url(secrets.token_bytes(VERIFIER_NBYTES))
    return code_verifier, code_challenge_for(code_verifier)


def begin_flow(*, max_age_seconds: int = OAUTH_CORRELATION_TTL_SECONDS) -> OAuthCorrelation:
    state = create_oauth_state()
    code_verifier, code_challenge = create_pkce_pair()
    return OAuthCorrelation(
        state=state,
        code_verifier=code_verifier,
        code_challenge=code_challenge,
        max_age_seconds=max_age_seconds,
    )
