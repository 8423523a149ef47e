from __future__ import annotations

import base64
import hashlib

from career_auth.domain.entities.oauth import (
    OAUTH_CORRELATION_TTL_SECONDS,
    OAuthCallbackStatus,
    OAuthCorrelation,
)
from career_auth.domain.services.pkce import begin_flow, code_challenge_for, create_pkce_pair


def test_code_challenge_matches_rfc7636_example():
    verifier = "dBjftJeZ4CVP-mA92ZWzjJ8e8sZBMHCg7uJMUq6y-LA"
    assert code_challenge_for(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_pkce_pair_is_unpadded_base64url():
    verifier, challenge = create_pkce_pair()
    assert "=" not in verifier and "=" not in challenge
    assert 43 <= len(verifier) <= 128
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    assert challenge == base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def test_begin_flow_returns_fresh_values():
    first = begin_flow()
    second = begin_flow()
    assert first.state != second.state
    assert first.code_verifier != second.code_verifier
    assert first.code_challenge == code_challenge_for(first.code_verifier)
    assert first.max_age_seconds == OAUTH_CORRELATION_TTL_SECONDS


def test_consume_accepts_matching_state():
    correlation = OAuthCorrelation(state="state-1", code_verifier="verifier-1")
    result = correlation.consume(error=None, code="code-1", state="state-1")
    assert result.ok
    assert result.code == "code-1"
    assert result.code_verifier == "verifier-1"


def test_consume_rejects_state_mismatch():
    correlation = OAuthCorrelation(state="state-1", code_verifier="verifier-1")
    result = correlation.consume(error=None, code="code-1", state="state-2")
    assert result.status is OAuthCallbackStatus.STATE_MISMATCH
    assert result.code is None
    assert result.redirect_flag == "failed"


def test_consume_without_cookies_is_a_mismatch():
    result = OAuthCorrelation(state=None, code_verifier=None).consume(error=None, code="c", state="s")
    assert result.status is OAuthCallbackStatus.STATE_MISMATCH


def test_consume_provider_error_means_cancelled():
    correlation = OAuthCorrelation(state="state-1", code_verifier="verifier-1")
    result = correlation.consume(error="access_denied", code=None, state="state-1")
    assert result.status is OAuthCallbackStatus.CANCELLED
    assert result.redirect_flag == "cancelled"


def test_consume_missing_code_or_verifier_is_malformed():
    correlation = OAuthCorrelation(state="state-1", code_verifier="verifier-1")
    assert correlation.consume(error=None, code=None, state="state-1").status is OAuthCallbackStatus.MALFORMED

    no_verifier = OAuthCorrelation(state="state-1", code_verifier=None)
    assert no_verifier.consume(error=None, code="c", state="state-1").status is OAuthCallbackStatus.MALFORMED
