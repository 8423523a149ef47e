from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlsplit

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: str = "false") -> bool:
    return (_env(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


def origin_of(url: str) -> str:
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return url.strip().rstrip("/")
    return f"{parts.scheme}://{parts.netloc}"


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    jwt_secret: str
    jwt_access_ttl_minutes: int
    jwt_leeway_seconds: int
    refresh_ttl_days: int
    frontend_url: str
    app_env: str
    google_oauth_client_id: str
    google_oauth_client_secret: str
    google_oauth_redirect_uri: str
    oauth_http_timeout_seconds: float
    email_token_ttl_hours: int
    password_reset_ttl_minutes: int
    log_level: str
    db_auto_create: bool
    rate_limit_enabled: bool

    @property
    def frontend_origin(self) -> str:
        return origin_of(self.frontend_url)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def google_oauth_configured(self) -> bool:
        return bool(
            self.google_oauth_client_id
            and self.google_oauth_client_secret
            and self.google_oauth_redirect_uri
        )


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        jwt_secret=_env("JWT_SECRET", ""),
        jwt_access_ttl_minutes=int(_env("JWT_ACCESS_TTL_MINUTES", "60")),
        jwt_leeway_seconds=int(_env("JWT_LEEWAY_SECONDS", "0")),
        refresh_ttl_days=int(_env("REFRESH_TTL_DAYS", "30")),
        frontend_url=_env("FRONTEND_URL", "http://localhost:3000"),
        app_env=_env("APP_ENV", "development"),
        google_oauth_client_id=_env("GOOGLE_OAUTH_CLIENT_ID", ""),
        google_oauth_client_secret=_env("GOOGLE_OAUTH_CLIENT_SECRET", ""),
        google_oauth_redirect_uri=_env("GOOGLE_OAUTH_REDIRECT_URI", ""),
        oauth_http_timeout_seconds=float(_env("OAUTH_HTTP_TIMEOUT_SECONDS", "10")),
        email_token_ttl_hours=int(_env("EMAIL_TOKEN_TTL_HOURS", "24")),
        password_reset_ttl_minutes=int(_env("PASSWORD_RESET_TTL_MINUTES", "30")),
        log_level=_env("LOG_LEVEL", "INFO"),
        db_auto_create=_bool("DB_AUTO_CREATE"),
        rate_limit_enabled=_bool("RATE_LIMIT_ENABLED", "true"),
    )
