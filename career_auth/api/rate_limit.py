from __future__ import annotations

import logging
import math
import time

from fastapi import Request
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from career_auth.api.errors import api_error


logger = logging.getLogger(__name__)

OAUTH_START_LIMIT = "20/minute"
OAUTH_CALLBACK_LIMIT = "30/minute"
CREDENTIALS_LIMIT = "10/minute"
EMAIL_DISPATCH_LIMIT = "5/minute"


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


def key_by_ip(request: Request) -> str:
    return client_ip(request) or "unknown"


def key_by_ip_and_email(request: Request, email: str | None) -> str:
    ip = key_by_ip(request)
    email = (email or "").strip().lower()
    return f"{ip}:{email}" if email else ip


class RequestRateLimiter:
    """Moving-window limits per (scope, key), kept in process memory."""

    def __init__(self, *, enabled: bool = True, storage=None):
        self._enabled = enabled
        self._strategy = MovingWindowRateLimiter(storage or MemoryStorage())

    def enforce(self, rule: str, scope: str, key: str) -> None:
        if not self._enabled:
            return
        item = parse(rule)
        if self._strategy.hit(item, scope, key):
            return

        reset_at = self._strategy.get_window_stats(item, scope, key).reset_time
        retry_after = max(1, math.ceil(reset_at - time.time()))
        logger.warning("rate_limit: exceeded scope=%s rule=%s", scope, rule)
        raise api_error(429, "Too many requests", "RATE_LIMITED", headers={"Retry-After": str(retry_after)})
