from __future__ import annotations

from fastapi import Request, Response

from career_auth.domain.entities.oauth import OAuthCorrelation


API_PREFIX = "/api/v1"
AUTH_PATH = f"{API_PREFIX}/auth"

REFRESH_COOKIE_NAME = "career_tracker_refresh"


def oauth_cookie_path(provider: str) -> str:
    return f"{AUTH_PATH}/oauth/{provider}"


def oauth_state_cookie_name(provider: str) -> str:
    return f"career_tracker_{provider}_oauth_state"


def oauth_verifier_cookie_name(provider: str) -> str:
    return f"career_tracker_{provider}_oauth_verifier"


def set_refresh_cookie(response: Response, refresh_token: str, expires_at, *, production: bool) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=production,
        samesite="none" if production else "lax",
        expires=expires_at,
        path=AUTH_PATH,
    )


def clear_refresh_cookie(response: Response, *, production: bool) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path=AUTH_PATH,
        httponly=True,
        secure=production,
        samesite="none" if production else "lax",
    )


def get_refresh_cookie(request: Request) -> str | None:
    value = request.cookies.get(REFRESH_COOKIE_NAME)
    return value or None


def set_oauth_cookies(
    response: Response,
    provider: str,
    correlation: OAuthCorrelation,
    *,
    production: bool,
) -> None:
    # lax: the provider sends the browser back with a top-level GET
    for name, value in (
        (oauth_state_cookie_name(provider), correlation.state),
        (oauth_verifier_cookie_name(provider), correlation.code_verifier),
    ):
        response.set_cookie(
            key=name,
            value=value or "",
            httponly=True,
            secure=production,
            samesite="lax",
            max_age=correlation.max_age_seconds,
            path=oauth_cookie_path(provider),
        )


def clear_oauth_cookies(response: Response, provider: str, *, production: bool) -> None:
    for name in (oauth_state_cookie_name(provider), oauth_verifier_cookie_name(provider)):
        response.delete_cookie(
            key=name,
            path=oauth_cookie_path(provider),
            httponly=True,
            secure=production,
            samesite="lax",
        )


def read_oauth_correlation(request: Request, provider: str) -> OAuthCorrelation:
    return OAuthCorrelation(
        state=request.cookies.get(oauth_state_cookie_name(provider)) or None,
        code_verifier=request.cookies.get(oauth_verifier_cookie_name(provider)) or None,
    )
