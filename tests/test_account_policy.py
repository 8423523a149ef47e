from __future__ import annotations

from datetime import datetime, timezone

import pytest

from career_auth.domain.entities.user import User
from career_auth.domain.exceptions import (
    AccountDeactivatedError,
    CapabilityDeniedError,
    EmailNotVerifiedError,
    UserNotFoundError,
)
from career_auth.domain.services.account_policy import (
    ROLE_ADMIN,
    ROLE_USER,
    authorize,
    enforce_account_policy,
    ensure_roles,
    roles_for_user,
)


def _user(**overrides) -> User:
    now = datetime.now(timezone.utc)
    values = {
        "id": "user-1",
        "name": "Alice",
        "email": "alice@example.com",
        "password_hash": "hashed:Passw0rd!",
        "email_verified_at": now,
        "is_active": True,
        "is_admin": False,
        "ai_free_uses_used": 0,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return User(**values)


def test_missing_user_is_rejected_first():
    with pytest.raises(UserNotFoundError):
        enforce_account_policy(None, require_verified_email=True)


def test_inactive_check_runs_before_email_check():
    user = _user(is_active=False, email_verified_at=None)
    with pytest.raises(AccountDeactivatedError):
        enforce_account_policy(user, require_verified_email=True)


def test_unverified_user_passes_when_route_does_not_require_it():
    user = _user(email_verified_at=None)
    assert enforce_account_policy(user, require_verified_email=False) is user
    with pytest.raises(EmailNotVerifiedError):
        enforce_account_policy(user, require_verified_email=True)


def test_roles_follow_admin_flag():
    assert roles_for_user(_user()) == frozenset({ROLE_USER})
    assert roles_for_user(_user(is_admin=True)) == frozenset({ROLE_USER, ROLE_ADMIN})


def test_authorize_reports_missing_roles():
    decision = authorize({ROLE_USER}, {ROLE_USER, ROLE_ADMIN})
    assert decision.allowed is False
    assert decision.missing == frozenset({ROLE_ADMIN})

    assert authorize({ROLE_USER}, set()).allowed is True


def test_ensure_roles():
    admin = _user(is_admin=True)
    assert ensure_roles(admin, {ROLE_ADMIN}) is admin
    with pytest.raises(CapabilityDeniedError, match="admin"):
        ensure_roles(_user(), {ROLE_ADMIN})
