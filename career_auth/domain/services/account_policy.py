from __future__ import annotations

from dataclasses import dataclass

from career_auth.domain.entities.user import User
from career_auth.domain.exceptions import (
    AccountDeactivatedError,
    CapabilityDeniedError,
    EmailNotVerifiedError,
    UserNotFoundError,
)


ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    missing: frozenset[str]


def enforce_account_policy(user: User | None, *, require_verified_email: bool) -> User:
    """Second gate stage, run after the access token has been verified.

    Checks are ordered: the principal must still exist, be active, and (when
    the route asks for it) have a verified email.
    """
    if user is None:
        raise UserNotFoundError("Unauthorized")
    if not user.is_active:
        raise AccountDeactivatedError("Account deactivated")
    if require_verified_email and user.email_verified_at is None:
        raise EmailNotVerifiedError("Email not verified")
    return user


def roles_for_user(user: User) -> frozenset[str]:
    if user.is_admin:
        return frozenset({ROLE_USER, ROLE_ADMIN})
    return frozenset({ROLE_USER})


def authorize(roles: frozenset[str] | set[str], required: frozenset[str] | set[str]) -> AccessDecision:
    missing = frozenset(required) - frozenset(roles)
    return AccessDecision(allowed=not missing, missing=missing)


def ensure_roles(user: User, required: frozenset[str] | set[str]) -> User:
    decision = authorize(roles_for_user(user), required)
    if not decision.allowed:
        raise CapabilityDeniedError(f"Missing roles: {', '.join(sorted(decision.missing))}")
    return user
