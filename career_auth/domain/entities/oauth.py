from __future__ import annotations

import hmac
from dataclasses import dataclass
from enum import Enum


OAUTH_CORRELATION_TTL_SECONDS = 10 * 60


class OAuthCallbackStatus(str, Enum):
    OK = "ok"
    CANCELLED = "cancelled"
    MALFORMED = "malformed"
    STATE_MISMATCH = "state_mismatch"


@dataclass(frozen=True)
class OAuthCallbackResult:
    status: OAuthCallbackStatus
    code: str | None = None
    code_verifier: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OAuthCallbackStatus.OK

    @property
    def redirect_flag(self) -> str:
        """Query flag sent back to the frontend login page on failure."""
        if self.status is OAuthCallbackStatus.CANCELLED:
            return "cancelled"
        return "failed"


@dataclass(frozen=True)
class OAuthCorrelation:
    """State nonce and PKCE verifier round-tripped through the provider redirect.

    Only ``state`` travels to the provider; the verifier stays in an HttpOnly
    cookie and only its derived challenge is sent. Instances read back from
    cookies carry no challenge.
    """

    state: str | None
    code_verifier: str | None
    code_challenge: str | None = None
    max_age_seconds: int = OAUTH_CORRELATION_TTL_SECONDS

    def consume(
        self,
        *,
        error: str | None,
        code: str | None,
        state: str | None,
    ) -> OAuthCallbackResult:
        if error:
            return OAuthCallbackResult(status=OAuthCallbackStatus.CANCELLED)
        if not code or not state:
            return OAuthCallbackResult(status=OAuthCallbackStatus.MALFORMED)
        if not self.state or not hmac.compare_digest(self.state.encode(), state.encode()):
            return OAuthCallbackResult(status=OAuthCallbackStatus.STATE_MISMATCH)
        if not self.code_verifier:
            return OAuthCallbackResult(status=OAuthCallbackStatus.MALFORMED)
        return OAuthCallbackResult(
            status=OAuthCallbackStatus.OK,
            code=code,
            code_verifier=self.code_verifier,
        )
