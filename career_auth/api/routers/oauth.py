from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from career_auth.api.cookies import (
    clear_oauth_cookies,
    read_oauth_correlation,
    set_oauth_cookies,
    set_refresh_cookie,
)
from career_auth.api.deps import (
    get_app_settings,
    get_complete_oauth_use_case,
    get_start_oauth_use_case,
    rate_limit_by_ip,
)
from career_auth.api.errors import api_error
from career_auth.api.rate_limit import OAUTH_CALLBACK_LIMIT, OAUTH_START_LIMIT, client_ip
from career_auth.application.dto.auth import CompleteOAuthInput
from career_auth.application.use_cases.complete_oauth import CompleteOAuthUseCase
from career_auth.application.use_cases.oauth_common import resolve_oauth_provider
from career_auth.application.use_cases.start_oauth import StartOAuthUseCase
from career_auth.domain.exceptions import (
    DomainError,
    OAuthNotConfiguredError,
    OAuthProviderNotSupportedError,
)
from career_auth.shared.config import Settings


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/oauth", tags=["oauth"])


def _provider_segment(provider: str) -> str:
    try:
        resolve_oauth_provider(provider)
    except OAuthProviderNotSupportedError as exc:
        raise api_error(404, str(exc)) from exc
    return provider.strip().lower()


def _login_redirect(settings: Settings, segment: str, flag: str) -> RedirectResponse:
    response = RedirectResponse(f"{settings.frontend_url.rstrip('/')}/login?oauth={flag}", status_code=302)
    clear_oauth_cookies(response, segment, production=settings.is_production)
    return response


@router.get(
    "/{provider}/start",
    dependencies=[Depends(rate_limit_by_ip(OAUTH_START_LIMIT, "oauth_start"))],
)
def start_oauth(
    provider: str,
    settings: Settings = Depends(get_app_settings),
    use_case: StartOAuthUseCase = Depends(get_start_oauth_use_case),
):
    segment = _provider_segment(provider)
    try:
        output = use_case.execute(provider=segment)
    except OAuthNotConfiguredError as exc:
        raise api_error(500, str(exc)) from exc

    response = RedirectResponse(output.authorization_url, status_code=302)
    set_oauth_cookies(response, segment, output.correlation, production=settings.is_production)
    return response


@router.get(
    "/{provider}/callback",
    dependencies=[Depends(rate_limit_by_ip(OAUTH_CALLBACK_LIMIT, "oauth_callback"))],
)
def oauth_callback(
    provider: str,
    request: Request,
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
    user_agent: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    use_case: CompleteOAuthUseCase = Depends(get_complete_oauth_use_case),
):
    segment = _provider_segment(provider)
    result = read_oauth_correlation(request, segment).consume(error=error, code=code, state=state)

    if not result.ok:
        logger.warning("oauth_router: callback_rejected provider=%s status=%s", segment, result.status.value)
        return _login_redirect(settings, segment, result.redirect_flag)

    try:
        output = use_case.execute(
            CompleteOAuthInput(
                provider=segment,
                code=result.code,
                code_verifier=result.code_verifier,
                user_agent=user_agent,
                ip=client_ip(request),
            )
        )
    except OAuthNotConfiguredError as exc:
        response = JSONResponse(status_code=500, content={"message": str(exc)})
        clear_oauth_cookies(response, segment, production=settings.is_production)
        return response
    except DomainError as exc:
        logger.warning("oauth_router: callback_failed provider=%s error=%s", segment, type(exc).__name__)
        return _login_redirect(settings, segment, "failed")
    except Exception:
        logger.exception("oauth_router: callback_error provider=%s", segment)
        return _login_redirect(settings, segment, "failed")

    response = RedirectResponse(f"{settings.frontend_url.rstrip('/')}/oauth/callback", status_code=302)
    clear_oauth_cookies(response, segment, production=settings.is_production)
    set_refresh_cookie(
        response,
        output.session.refresh_token,
        output.session.expires_at,
        production=settings.is_production,
    )
    return response
