from __future__ import annotations

import re
from dataclasses import dataclass


PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_LENGTH = 72
EMAIL_LOCAL_MIN_LENGTH = 3


@dataclass(frozen=True)
class PasswordPolicyResult:
    ok: bool
    reasons: list[str]


def _is_too_repetitive(password: str) -> bool:
    if re.fullmatch(r"(.)\1+", password):
        return True
    return len(set(password)) <= 2 and len(password) >= PASSWORD_MIN_LENGTH


def _contains_email(password: str, email: str | None) -> bool:
    if not email:
        return False
    lowered = password.lower()
    email_l = email.lower()
    local = email_l.split("@")[0]
    if email_l in lowered:
        return True
    return len(local) >= EMAIL_LOCAL_MIN_LENGTH and local in lowered


def evaluate_password_policy(password: str, email: str | None = None) -> PasswordPolicyResult:
    reasons: list[str] = []

    if not password.strip():
        reasons.append("Password cannot be empty or only spaces.")
    if len(password) < PASSWORD_MIN_LENGTH:
        reasons.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    if len(password) > PASSWORD_MAX_LENGTH:
        reasons.append(f"Password must be {PASSWORD_MAX_LENGTH} characters or less.")

    has_lower = re.search(r"[a-z]", password) is not None
    has_upper = re.search(r"[A-Z]", password) is not None
    has_number = re.search(r"\d", password) is not None
    has_symbol = re.search(r"[^A-Za-z0-9]", password) is not None
    if not (has_lower and has_upper and has_number and has_symbol):
        reasons.append("Password must include lowercase, uppercase, number, and symbol.")

    if _contains_email(password, email):
        reasons.append("Password must not contain your email.")
    if _is_too_repetitive(password):
        reasons.append("Password is too repetitive (avoid obvious patterns).")

    return PasswordPolicyResult(ok=not reasons, reasons=reasons)
