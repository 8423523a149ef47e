from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends, Header, Request

from career_auth.api.errors import api_error
from career_auth.api.rate_limit import RequestRateLimiter, key_by_ip
from career_auth.application.dto.auth import AccessTokenPayload
from career_auth.application.ports.auth_port import AuthPort
from career_auth.application.ports.email_port import EmailPort
from career_auth.application.ports.oauth_provider_port import OAuthProviderPort
from career_auth.application.ports.password_hasher_port import PasswordHasherPort
from career_auth.application.ports.token_port import TokenPort
from career_auth.application.services.session_manager import SessionManager
from career_auth.application.use_cases.change_password import ChangePasswordUseCase
from career_auth.application.use_cases.complete_oauth import CompleteOAuthUseCase
from career_auth.application.use_cases.deactivate_account import DeactivateAccountUseCase
from career_auth.application.use_cases.delete_account import DeleteAccountUseCase
from career_auth.application.use_cases.forgot_password import ForgotPasswordUseCase
from career_auth.application.use_cases.get_csrf_token import GetCsrfTokenUseCase
from career_auth.application.use_cases.get_me import GetMeUseCase
from career_auth.application.use_cases.login_local import LoginLocalUseCase
from career_auth.application.use_cases.logout_session import LogoutSessionUseCase
from career_auth.application.use_cases.purge_revoked_sessions import PurgeRevokedSessionsUseCase
from career_auth.application.use_cases.refresh_session import RefreshSessionUseCase
from career_auth.application.use_cases.register_user import RegisterUserUseCase
from career_auth.application.use_cases.resend_verification import ResendVerificationUseCase
from career_auth.application.use_cases.reset_password import ResetPasswordUseCase
from career_auth.application.use_cases.revoke_user_sessions import RevokeUserSessionsUseCase
from career_auth.application.use_cases.start_oauth import StartOAuthUseCase
from career_auth.application.use_cases.update_me import UpdateMeUseCase
from career_auth.application.use_cases.verify_email import VerifyEmailUseCase
from career_auth.core.db import get_engine
from career_auth.domain.entities.user import OAuthProvider, User
from career_auth.domain.exceptions import (
    AccountDeactivatedError,
    CapabilityDeniedError,
    EmailNotVerifiedError,
    TokenExpiredError,
    TokenValidationError,
    TokenWrongTypeError,
    UserNotFoundError,
)
from career_auth.domain.services.account_policy import enforce_account_policy, ensure_roles
from career_auth.infrastructure.clients.email_client import LoggingEmailSender
from career_auth.infrastructure.clients.google_oauth_client import GoogleOAuthClient, GoogleOAuthClientSettings
from career_auth.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
from career_auth.infrastructure.security.password_hasher import PasslibPasswordHasher
from career_auth.infrastructure.security.token_service import JwtTokenService
from career_auth.shared.config import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_accounts_repository(settings: Settings = Depends(get_app_settings)) -> AuthPort:
    if not settings.postgres_dsn:
        raise api_error(500, "POSTGRES_DSN is required.")
    return SqlAccountsRepository(get_engine(settings.postgres_dsn))


@lru_cache(maxsize=1)
def _get_password_hasher() -> PasslibPasswordHasher:
    return PasslibPasswordHasher()


def get_password_hasher() -> PasswordHasherPort:
    return _get_password_hasher()


def get_token_service(settings: Settings = Depends(get_app_settings)) -> TokenPort:
    if not settings.jwt_secret:
        raise api_error(500, "JWT_SECRET is required.")
    return JwtTokenService(
        jwt_secret=settings.jwt_secret,
        access_ttl_minutes=settings.jwt_access_ttl_minutes,
        refresh_ttl_days=settings.refresh_ttl_days,
        leeway_seconds=settings.jwt_leeway_seconds,
    )


@lru_cache(maxsize=2)
def _get_rate_limiter(enabled: bool) -> RequestRateLimiter:
    return RequestRateLimiter(enabled=enabled)


def get_rate_limiter(settings: Settings = Depends(get_app_settings)) -> RequestRateLimiter:
    return _get_rate_limiter(settings.rate_limit_enabled)


def rate_limit_by_ip(rule: str, scope: str):
    def _dependency(request: Request, limiter: RequestRateLimiter = Depends(get_rate_limiter)) -> None:
        limiter.enforce(rule, scope, key_by_ip(request))

    return _dependency


def get_email_sender() -> EmailPort:
    return LoggingEmailSender()


def get_oauth_providers(settings: Settings = Depends(get_app_settings)) -> dict[OAuthProvider, OAuthProviderPort]:
    providers: dict[OAuthProvider, OAuthProviderPort] = {}
    if settings.google_oauth_configured:
        providers["GOOGLE"] = GoogleOAuthClient(
            GoogleOAuthClientSettings(
                client_id=settings.google_oauth_client_id,
                client_secret=settings.google_oauth_client_secret,
                redirect_uri=settings.google_oauth_redirect_uri,
                timeout_seconds=settings.oauth_http_timeout_seconds,
            )
        )
    return providers


def get_session_manager(
    auth_port: AuthPort = Depends(get_accounts_repository),
    token_port: TokenPort = Depends(get_token_service),
) -> SessionManager:
    return SessionManager(auth_port=auth_port, token_port=token_port)


def get_register_user_use_case(
    settings: Settings = Depends(get_app_settings),
    auth_port: AuthPort = Depends(get_accounts_repository),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
    token_port: TokenPort = Depends(get_token_service),
    session_manager: SessionManager = Depends(get_session_manager),
    email_port: EmailPort = Depends(get_email_sender),
) -> RegisterUserUseCase:
    return RegisterUserUseCase(
        auth_port=auth_port,
        password_hasher=password_hasher,
        token_port=token_port,
        session_manager=session_manager,
        email_port=email_port,
        frontend_url=settings.frontend_url,
        verify_token_ttl=timedelta(hours=settings.email_token_ttl_hours),
    )


def get_login_local_use_case(
    auth_port: AuthPort = Depends(get_accounts_repository),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
    token_port: TokenPort = Depends(get_token_service),
    session_manager: SessionManager = Depends(get_session_manager),
) -> LoginLocalUseCase:
    return LoginLocalUseCase(
        auth_port=auth_port,
        password_hasher=password_hasher,
        token_port=token_port,
        session_manager=session_manager,
    )


def get_refresh_session_use_case(
    token_port: TokenPort = Depends(get_token_service),
    session_manager: SessionManager = Depends(get_session_manager),
) -> RefreshSessionUseCase:
    return RefreshSessionUseCase(session_manager=session_manager, token_port=token_port)


def get_logout_session_use_case(
    session_manager: SessionManager = Depends(get_session_manager),
) -> LogoutSessionUseCase:
    return LogoutSessionUseCase(session_manager=session_manager)


def get_csrf_token_use_case(
    session_manager: SessionManager = Depends(get_session_manager),
) -> GetCsrfTokenUseCase:
    return GetCsrfTokenUseCase(session_manager=session_manager)


def get_verify_email_use_case(
    auth_port: AuthPort = Depends(get_accounts_repository),
    token_port: TokenPort = Depends(get_token_service),
) -> VerifyEmailUseCase:
    return VerifyEmailUseCase(auth_port=auth_port, token_port=token_port)


def get_resend_verification_use_case(
    settings: Settings = Depends(get_app_settings),
    auth_port: AuthPort = Depends(get_accounts_repository),
    token_port: TokenPort = Depends(get_token_service),
    email_port: EmailPort = Depends(get_email_sender),
) -> ResendVerificationUseCase:
    return ResendVerificationUseCase(
        auth_port=auth_port,
        token_port=token_port,
        email_port=email_port,
        frontend_url=settings.frontend_url,
        verify_token_ttl=timedelta(hours=settings.email_token_ttl_hours),
    )


def get_forgot_password_use_case(
    settings: Settings = Depends(get_app_settings),
    auth_port: AuthPort = Depends(get_accounts_repository),
    token_port: TokenPort = Depends(get_token_service),
    email_port: EmailPort = Depends(get_email_sender),
) -> ForgotPasswordUseCase:
    return ForgotPasswordUseCase(
        auth_port=auth_port,
        token_port=token_port,
        email_port=email_port,
        frontend_url=settings.frontend_url,
        reset_token_ttl=timedelta(minutes=settings.password_reset_ttl_minutes),
    )


def get_reset_password_use_case(
    auth_port: AuthPort = Depends(get_accounts_repository),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
    token_port: TokenPort = Depends(get_token_service),
    session_manager: SessionManager = Depends(get_session_manager),
) -> ResetPasswordUseCase:
    return ResetPasswordUseCase(
        auth_port=auth_port,
        password_hasher=password_hasher,
        token_port=token_port,
        session_manager=session_manager,
    )


def get_start_oauth_use_case(
    providers: dict[OAuthProvider, OAuthProviderPort] = Depends(get_oauth_providers),
) -> StartOAuthUseCase:
    return StartOAuthUseCase(providers=providers)


def get_complete_oauth_use_case(
    auth_port: AuthPort = Depends(get_accounts_repository),
    providers: dict[OAuthProvider, OAuthProviderPort] = Depends(get_oauth_providers),
    token_port: TokenPort = Depends(get_token_service),
    session_manager: SessionManager = Depends(get_session_manager),
) -> CompleteOAuthUseCase:
    return CompleteOAuthUseCase(
        auth_port=auth_port,
        providers=providers,
        token_port=token_port,
        session_manager=session_manager,
    )


def get_get_me_use_case() -> GetMeUseCase:
    return GetMeUseCase()


def get_update_me_use_case(auth_port: AuthPort = Depends(get_accounts_repository)) -> UpdateMeUseCase:
    return UpdateMeUseCase(auth_port=auth_port)


def get_change_password_use_case(
    auth_port: AuthPort = Depends(get_accounts_repository),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
    session_manager: SessionManager = Depends(get_session_manager),
) -> ChangePasswordUseCase:
    return ChangePasswordUseCase(
        auth_port=auth_port,
        password_hasher=password_hasher,
        session_manager=session_manager,
    )


def get_deactivate_account_use_case(
    auth_port: AuthPort = Depends(get_accounts_repository),
    session_manager: SessionManager = Depends(get_session_manager),
) -> DeactivateAccountUseCase:
    return DeactivateAccountUseCase(auth_port=auth_port, session_manager=session_manager)


def get_delete_account_use_case(auth_port: AuthPort = Depends(get_accounts_repository)) -> DeleteAccountUseCase:
    return DeleteAccountUseCase(auth_port=auth_port)


def get_revoke_user_sessions_use_case(
    auth_port: AuthPort = Depends(get_accounts_repository),
    session_manager: SessionManager = Depends(get_session_manager),
) -> RevokeUserSessionsUseCase:
    return RevokeUserSessionsUseCase(auth_port=auth_port, session_manager=session_manager)


def get_purge_revoked_sessions_use_case(
    session_manager: SessionManager = Depends(get_session_manager),
) -> PurgeRevokedSessionsUseCase:
    return PurgeRevokedSessionsUseCase(session_manager=session_manager)


def require_allowed_origin(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Cookie-authenticated endpoints only answer the configured frontend origin."""
    origin = request.headers.get("origin")
    if not origin or origin.rstrip("/") != settings.frontend_origin:
        raise api_error(401, "Invalid session")


def get_access_claims(
    authorization: str | None = Header(default=None),
    token_port: TokenPort = Depends(get_token_service),
) -> AccessTokenPayload:
    if not authorization or not authorization.startswith("Bearer "):
        raise api_error(401, "Missing Bearer token", "UNAUTHORIZED")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise api_error(401, "Missing Bearer token", "UNAUTHORIZED")

    try:
        return token_port.decode_token(token=token, expected_kind="access")
    except TokenExpiredError as exc:
        raise api_error(401, "Token expired", "UNAUTHORIZED") from exc
    except TokenWrongTypeError as exc:
        raise api_error(401, "Invalid token type", "UNAUTHORIZED") from exc
    except TokenValidationError as exc:
        raise api_error(401, "Invalid token", "UNAUTHORIZED") from exc


def get_optional_claims(
    authorization: str | None = Header(default=None),
    token_port: TokenPort = Depends(get_token_service),
) -> AccessTokenPayload | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    try:
        return token_port.decode_token(token=authorization[len("Bearer "):].strip(), expected_kind="access")
    except TokenValidationError:
        return None


def _load_user(
    claims: AccessTokenPayload,
    auth_port: AuthPort,
    *,
    require_verified_email: bool,
) -> User:
    try:
        return enforce_account_policy(
            auth_port.get_user_by_id(user_id=claims.user_id),
            require_verified_email=require_verified_email,
        )
    except UserNotFoundError as exc:
        raise api_error(401, "Unauthorized", "UNAUTHORIZED") from exc
    except AccountDeactivatedError as exc:
        raise api_error(403, "Account deactivated", "ACCOUNT_DEACTIVATED") from exc
    except EmailNotVerifiedError as exc:
        raise api_error(403, "Email not verified", "EMAIL_NOT_VERIFIED") from exc


def get_current_user(
    claims: AccessTokenPayload = Depends(get_access_claims),
    auth_port: AuthPort = Depends(get_accounts_repository),
) -> User:
    return _load_user(claims, auth_port, require_verified_email=False)


def get_verified_user(
    claims: AccessTokenPayload = Depends(get_access_claims),
    auth_port: AuthPort = Depends(get_accounts_repository),
) -> User:
    return _load_user(claims, auth_port, require_verified_email=True)


def require_roles(*required: str):
    def _dependency(user: User = Depends(get_current_user)) -> User:
        try:
            return ensure_roles(user, set(required))
        except CapabilityDeniedError as exc:
            raise api_error(403, "Forbidden", "ADMIN_FORBIDDEN") from exc

    return _dependency
