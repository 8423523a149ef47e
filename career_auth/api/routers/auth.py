from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, Request, Response

from career_auth.api.cookies import clear_refresh_cookie, get_refresh_cookie, set_refresh_cookie
from career_auth.api.deps import (
    get_app_settings,
    get_csrf_token_use_case,
    get_current_user,
    get_forgot_password_use_case,
    get_login_local_use_case,
    get_logout_session_use_case,
    get_rate_limiter,
    get_refresh_session_use_case,
    get_register_user_use_case,
    get_resend_verification_use_case,
    get_reset_password_use_case,
    get_verify_email_use_case,
    require_allowed_origin,
)
from career_auth.api.errors import api_error
from career_auth.api.rate_limit import (
    CREDENTIALS_LIMIT,
    EMAIL_DISPATCH_LIMIT,
    RequestRateLimiter,
    client_ip,
    key_by_ip_and_email,
)
from career_auth.api.schemas.auth import (
    AuthMeResponse,
    AuthResponse,
    AuthUserResponse,
    CsrfResponse,
    EmailRequest,
    LoginRequest,
    OkResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from career_auth.application.dto.auth import (
    AuthTokensOutput,
    LoginLocalInput,
    LogoutInput,
    RefreshSessionInput,
    RegisterUserInput,
    ResetPasswordInput,
    VerifyEmailInput,
)
from career_auth.application.use_cases.forgot_password import ForgotPasswordUseCase
from career_auth.application.use_cases.get_csrf_token import GetCsrfTokenUseCase
from career_auth.application.use_cases.login_local import LoginLocalUseCase
from career_auth.application.use_cases.logout_session import LogoutSessionUseCase
from career_auth.application.use_cases.refresh_session import RefreshSessionUseCase
from career_auth.application.use_cases.register_user import RegisterUserUseCase
from career_auth.application.use_cases.resend_verification import ResendVerificationUseCase
from career_auth.application.use_cases.reset_password import ResetPasswordUseCase
from career_auth.application.use_cases.verify_email import VerifyEmailUseCase
from career_auth.domain.entities.user import User
from career_auth.domain.exceptions import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidOneTimeTokenError,
    InvalidSessionError,
    PasswordPolicyError,
    PasswordReuseError,
)
from career_auth.shared.config import Settings


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def to_auth_response(output: AuthTokensOutput) -> AuthResponse:
    return AuthResponse(
        user=AuthUserResponse(
            id=output.user.id,
            name=output.user.name,
            email=output.user.email,
            email_verified=output.user.email_verified,
            is_active=output.user.is_active,
            is_admin=output.user.is_admin,
        ),
        token=output.access_token,
        csrf_token=output.session.csrf_token,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
def register_user(
    req: RegisterRequest,
    request: Request,
    response: Response,
    user_agent: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    limiter: RequestRateLimiter = Depends(get_rate_limiter),
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
):
    limiter.enforce(CREDENTIALS_LIMIT, "register", key_by_ip_and_email(request, req.email))
    try:
        output = use_case.execute(
            RegisterUserInput(
                name=req.name,
                email=req.email,
                password=req.password,
                user_agent=user_agent,
                ip=client_ip(request),
            )
        )
    except EmailAlreadyExistsError as exc:
        raise api_error(409, str(exc)) from exc
    except (PasswordPolicyError, ValueError) as exc:
        raise api_error(400, str(exc)) from exc

    set_refresh_cookie(
        response,
        output.session.refresh_token,
        output.session.expires_at,
        production=settings.is_production,
    )
    return to_auth_response(output)


@router.post("/login", response_model=AuthResponse)
def login_local(
    req: LoginRequest,
    request: Request,
    response: Response,
    user_agent: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    limiter: RequestRateLimiter = Depends(get_rate_limiter),
    use_case: LoginLocalUseCase = Depends(get_login_local_use_case),
):
    limiter.enforce(CREDENTIALS_LIMIT, "login", key_by_ip_and_email(request, req.email))
    try:
        output = use_case.execute(
            LoginLocalInput(
                email=req.email,
                password=req.password,
                user_agent=user_agent,
                ip=client_ip(request),
            )
        )
    except InvalidCredentialsError as exc:
        raise api_error(401, "Invalid credentials") from exc

    set_refresh_cookie(
        response,
        output.session.refresh_token,
        output.session.expires_at,
        production=settings.is_production,
    )
    return to_auth_response(output)


@router.post("/refresh", response_model=AuthResponse, dependencies=[Depends(require_allowed_origin)])
def refresh_session(
    request: Request,
    response: Response,
    user_agent: str | None = Header(default=None),
    x_csrf_token: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    use_case: RefreshSessionUseCase = Depends(get_refresh_session_use_case),
):
    refresh_token = get_refresh_cookie(request)
    if not refresh_token or not x_csrf_token:
        raise api_error(401, "Invalid session")

    try:
        output = use_case.execute(
            RefreshSessionInput(
                refresh_token=refresh_token,
                csrf_token=x_csrf_token,
                user_agent=user_agent,
                ip=client_ip(request),
            )
        )
    except InvalidSessionError as exc:
        logger.warning("auth_router: refresh_rejected ip=%s", client_ip(request))
        raise api_error(401, "Invalid session") from exc

    set_refresh_cookie(
        response,
        output.session.refresh_token,
        output.session.expires_at,
        production=settings.is_production,
    )
    return to_auth_response(output)


@router.get("/csrf", response_model=CsrfResponse, dependencies=[Depends(require_allowed_origin)])
def get_csrf_token(
    request: Request,
    use_case: GetCsrfTokenUseCase = Depends(get_csrf_token_use_case),
):
    return CsrfResponse(csrf_token=use_case.execute(refresh_token=get_refresh_cookie(request)))


@router.post("/logout", response_model=OkResponse, dependencies=[Depends(require_allowed_origin)])
def logout_session(
    request: Request,
    response: Response,
    x_csrf_token: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    use_case: LogoutSessionUseCase = Depends(get_logout_session_use_case),
):
    refresh_token = get_refresh_cookie(request)
    if not refresh_token or not x_csrf_token:
        raise api_error(401, "Invalid session")
    if not use_case.execute(LogoutInput(refresh_token=refresh_token, csrf_token=x_csrf_token)):
        raise api_error(401, "Invalid session")

    clear_refresh_cookie(response, production=settings.is_production)
    return OkResponse(ok=True)


@router.get("/me", response_model=AuthMeResponse)
def auth_me(
    current_user: User = Depends(get_current_user),
):
    return AuthMeResponse(user={"id": current_user.id, "email": current_user.email})


@router.post("/verify-email", response_model=OkResponse)
def verify_email(
    req: VerifyEmailRequest,
    use_case: VerifyEmailUseCase = Depends(get_verify_email_use_case),
):
    try:
        use_case.execute(VerifyEmailInput(token=req.token))
    except InvalidOneTimeTokenError as exc:
        raise api_error(400, "Invalid or expired token") from exc
    return OkResponse(ok=True)


@router.post("/resend-verification", response_model=OkResponse)
def resend_verification(
    req: EmailRequest,
    request: Request,
    limiter: RequestRateLimiter = Depends(get_rate_limiter),
    use_case: ResendVerificationUseCase = Depends(get_resend_verification_use_case),
):
    limiter.enforce(EMAIL_DISPATCH_LIMIT, "resend_verification", key_by_ip_and_email(request, req.email))
    use_case.execute(email=req.email)
    return OkResponse(ok=True)


@router.post("/forgot-password", response_model=OkResponse)
def forgot_password(
    req: EmailRequest,
    request: Request,
    limiter: RequestRateLimiter = Depends(get_rate_limiter),
    use_case: ForgotPasswordUseCase = Depends(get_forgot_password_use_case),
):
    limiter.enforce(EMAIL_DISPATCH_LIMIT, "forgot_password", key_by_ip_and_email(request, req.email))
    use_case.execute(email=req.email)
    return OkResponse(ok=True)


@router.post("/reset-password", response_model=OkResponse)
def reset_password(
    req: ResetPasswordRequest,
    use_case: ResetPasswordUseCase = Depends(get_reset_password_use_case),
):
    try:
        use_case.execute(ResetPasswordInput(token=req.token, new_password=req.new_password))
    except InvalidOneTimeTokenError as exc:
        raise api_error(400, "Invalid or expired token") from exc
    except (PasswordPolicyError, PasswordReuseError) as exc:
        raise api_error(400, str(exc)) from exc
    return OkResponse(ok=True)
