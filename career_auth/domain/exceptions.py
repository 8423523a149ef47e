from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class InvalidCredentialsError(DomainError):
    """Email/password pair did not match an account."""


class EmailAlreadyExistsError(DomainError):
    """Another account already owns this email."""


class PasswordPolicyError(DomainError):
    """Password does not meet the strength policy."""

    def __init__(self, reasons: list[str]):
        self.reasons = list(reasons)
        super().__init__(f"Password does not meet requirements: {' '.join(self.reasons)}")


class PasswordReuseError(DomainError):
    """New password is identical to the current one."""


class InvalidSessionError(DomainError):
    """Refresh session is missing, revoked, expired or not bound to the CSRF token."""


class InvalidOneTimeTokenError(DomainError):
    """Email verification or password reset token is unknown, used or expired."""


class UserNotFoundError(DomainError):
    """Principal referenced by a valid token no longer exists."""


class AccountDeactivatedError(DomainError):
    """Account is switched off."""


class EmailNotVerifiedError(DomainError):
    """Route requires a verified email."""


class CapabilityDeniedError(DomainError):
    """Caller lacks a required role."""


class InvalidProfileUpdateError(DomainError):
    """Profile update payload failed validation."""


class TokenValidationError(DomainError):
    """Access token could not be accepted."""


class TokenExpiredError(TokenValidationError):
    """Token is past its expiry."""


class TokenInvalidError(TokenValidationError):
    """Token signature or shape is wrong."""


class TokenWrongTypeError(TokenValidationError):
    """Token kind does not match the expected kind."""


class OAuthProviderNotSupportedError(DomainError):
    """Provider path segment is not a supported identity provider."""


class OAuthNotConfiguredError(DomainError):
    """Provider credentials are missing from configuration."""


class OAuthProviderError(DomainError):
    """Code exchange or profile fetch against the provider failed."""


class OAuthProfileError(DomainError):
    """Provider profile cannot be used to sign in."""
