from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlencode, urlsplit

import pytest
from fastapi.testclient import TestClient

from career_auth.api.rate_limit import RequestRateLimiter
from career_auth.application.dto.auth import OAuthProfile, OAuthTokenSet
from career_auth.application.services.session_manager import SessionManager
from career_auth.domain.entities.user import AuthSession, OAuthAccount, User, UserToken
from career_auth.domain.exceptions import EmailAlreadyExistsError
from career_auth.infrastructure.security.token_service import JwtTokenService
from career_auth.shared.config import Settings


FRONTEND_URL = "http://localhost:3000"
FRONTEND_ORIGIN = "http://localhost:3000"
JWT_SECRET = "test-secret-with-enough-length-for-hs256"


class FakeAuthPort:
    """In-memory credential store.

    Transactions are serialized and roll back to a snapshot when ``fn`` raises.
    """

    def __init__(self):
        self.users: dict[str, User] = {}
        self.sessions: dict[str, AuthSession] = {}
        self.oauth_accounts: dict[str, OAuthAccount] = {}
        self.user_tokens: dict[str, UserToken] = {}
        self.transactions = 0
        self._tx_lock = threading.RLock()

    def execute_in_transaction(self, fn):
        with self._tx_lock:
            self.transactions += 1
            snapshot = (
                dict(self.users),
                dict(self.sessions),
                dict(self.oauth_accounts),
                dict(self.user_tokens),
            )
            try:
                return fn(self)
            except Exception:
                self.users, self.sessions, self.oauth_accounts, self.user_tokens = snapshot
                raise

    def get_user_by_id(self, *, user_id: str) -> User | None:
        return self.users.get(user_id)

    def get_user_by_email(self, *, email: str) -> User | None:
        email_l = email.strip().lower()
        for user in self.users.values():
            if user.email.lower() == email_l:
                return user
        return None

    def create_user(
        self,
        *,
        user_id: str,
        name: str,
        email: str,
        password_hash: str | None,
        email_verified_at: datetime | None,
        is_active: bool,
        created_at: datetime,
        updated_at: datetime,
    ) -> User:
        if any(user.email.lower() == email.lower() for user in self.users.values()):
            raise EmailAlreadyExistsError("Email already in use")
        user = User(
            id=user_id,
            name=name,
            email=email,
            password_hash=password_hash,
            email_verified_at=email_verified_at,
            is_active=is_active,
            is_admin=False,
            ai_free_uses_used=0,
            created_at=created_at,
            updated_at=updated_at,
        )
        self.users[user.id] = user
        return user

    def update_user_password_hash(self, *, user_id: str, password_hash: str, updated_at: datetime) -> None:
        self.users[user_id] = replace(self.users[user_id], password_hash=password_hash, updated_at=updated_at)

    def mark_user_email_verified(self, *, user_id: str, verified_at: datetime) -> None:
        user = self.users[user_id]
        if user.email_verified_at is None:
            self.users[user_id] = replace(user, email_verified_at=verified_at, updated_at=verified_at)

    def update_user_is_active(self, *, user_id: str, is_active: bool, updated_at: datetime) -> None:
        if user_id in self.users:
            self.users[user_id] = replace(self.users[user_id], is_active=is_active, updated_at=updated_at)

    def update_user_name(self, *, user_id: str, name: str, updated_at: datetime) -> User | None:
        if user_id not in self.users:
            return None
        self.users[user_id] = replace(self.users[user_id], name=name, updated_at=updated_at)
        return self.users[user_id]

    def delete_user(self, *, user_id: str) -> bool:
        if user_id not in self.users:
            return False
        self.sessions = {k: v for k, v in self.sessions.items() if v.user_id != user_id}
        self.oauth_accounts = {k: v for k, v in self.oauth_accounts.items() if v.user_id != user_id}
        self.user_tokens = {k: v for k, v in self.user_tokens.items() if v.user_id != user_id}
        del self.users[user_id]
        return True

    def create_oauth_account(
        self,
        *,
        account_id: str,
        user_id: str,
        provider: str,
        provider_account_id: str,
        created_at: datetime,
    ) -> OAuthAccount:
        if self.get_oauth_account(provider=provider, provider_account_id=provider_account_id) is not None:
            raise RuntimeError("duplicate key value violates unique constraint uq_oauth_accounts_provider_account")
        account = OAuthAccount(
            id=account_id,
            user_id=user_id,
            provider=provider,
            provider_account_id=provider_account_id,
            created_at=created_at,
        )
        self.oauth_accounts[account.id] = account
        return account

    def get_oauth_account(self, *, provider: str, provider_account_id: str) -> OAuthAccount | None:
        for account in self.oauth_accounts.values():
            if account.provider == provider and account.provider_account_id == provider_account_id:
                return account
        return None

    def create_session(
        self,
        *,
        session_id: str,
        user_id: str,
        refresh_token_hash: str,
        csrf_token_hash: str,
        expires_at: datetime,
        user_agent: str | None,
        ip: str | None,
        created_at: datetime,
    ) -> AuthSession:
        session = AuthSession(
            id=session_id,
            user_id=user_id,
            refresh_token_hash=refresh_token_hash,
            csrf_token_hash=csrf_token_hash,
            expires_at=expires_at,
            revoked_at=None,
            last_used_at=None,
            user_agent=user_agent,
            ip=ip,
            created_at=created_at,
        )
        self.sessions[session.id] = session
        return session

    def get_session_by_refresh_token_hash(self, *, refresh_token_hash: str) -> AuthSession | None:
        for session in self.sessions.values():
            if session.refresh_token_hash == refresh_token_hash:
                return session
        return None

    def revoke_live_session(
        self,
        *,
        refresh_token_hash: str,
        csrf_token_hash: str,
        revoked_at: datetime,
    ) -> AuthSession | None:
        with self._tx_lock:
            for session in self.sessions.values():
                if (
                    session.refresh_token_hash == refresh_token_hash
                    and session.csrf_token_hash == csrf_token_hash
                    and session.is_live(revoked_at)
                ):
                    revoked = replace(session, revoked_at=revoked_at, last_used_at=revoked_at)
                    self.sessions[session.id] = revoked
                    return revoked
        return None

    def revoke_session(self, *, session_id: str, revoked_at: datetime) -> bool:
        session = self.sessions.get(session_id)
        if session is None or session.revoked_at is not None:
            return False
        self.sessions[session_id] = replace(session, revoked_at=revoked_at)
        return True

    def revoke_sessions_for_user(self, *, user_id: str, revoked_at: datetime) -> int:
        count = 0
        for session in list(self.sessions.values()):
            if session.user_id == user_id and session.revoked_at is None:
                self.sessions[session.id] = replace(session, revoked_at=revoked_at)
                count += 1
        return count

    def update_session_csrf_token_hash(
        self,
        *,
        refresh_token_hash: str,
        csrf_token_hash: str,
        used_at: datetime,
    ) -> bool:
        session = self.get_session_by_refresh_token_hash(refresh_token_hash=refresh_token_hash)
        if session is None or not session.is_live(used_at):
            return False
        self.sessions[session.id] = replace(session, csrf_token_hash=csrf_token_hash, last_used_at=used_at)
        return True

    def delete_sessions_inactive_before(self, *, cutoff: datetime) -> int:
        stale = [
            session.id
            for session in self.sessions.values()
            if (session.revoked_at is not None and session.revoked_at < cutoff) or session.expires_at < cutoff
        ]
        for session_id in stale:
            del self.sessions[session_id]
        return len(stale)

    def create_user_token(
        self,
        *,
        token_id: str,
        user_id: str,
        kind: str,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> UserToken:
        token = UserToken(
            id=token_id,
            user_id=user_id,
            kind=kind,
            token_hash=token_hash,
            expires_at=expires_at,
            used_at=None,
            created_at=created_at,
        )
        self.user_tokens[token.id] = token
        return token

    def invalidate_user_tokens(self, *, user_id: str, kind: str, used_at: datetime) -> int:
        count = 0
        for token in list(self.user_tokens.values()):
            if token.user_id == user_id and token.kind == kind and token.used_at is None:
                self.user_tokens[token.id] = replace(token, used_at=used_at)
                count += 1
        return count

    def get_active_user_token(self, *, token_hash: str, kind: str, now: datetime) -> UserToken | None:
        for token in self.user_tokens.values():
            if (
                token.token_hash == token_hash
                and token.kind == kind
                and token.used_at is None
                and token.expires_at > now
            ):
                return token
        return None

    def consume_user_token(self, *, token_id: str, used_at: datetime) -> bool:
        token = self.user_tokens.get(token_id)
        if token is None or token.used_at is not None:
            return False
        self.user_tokens[token_id] = replace(token, used_at=used_at)
        return True

    # test helpers

    def add_user(self, **overrides) -> User:
        now = datetime.now(timezone.utc)
        values = {
            "id": "user-1",
            "name": "Alice",
            "email": "alice@example.com",
            "password_hash": "hashed:Passw0rd!",
            "email_verified_at": None,
            "is_active": True,
            "is_admin": False,
            "ai_free_uses_used": 0,
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        user = User(**values)
        self.users[user.id] = user
        return user

    def live_sessions(self, user_id: str) -> list[AuthSession]:
        now = datetime.now(timezone.utc)
        return [s for s in self.sessions.values() if s.user_id == user_id and s.is_live(now)]


class FakePasswordHasher:
    def __init__(self):
        self.dummy_verifies = 0

    def hash(self, plain_password: str) -> str:
        return f"hashed:{plain_password}"

    def verify(self, plain_password: str, password_hash: str) -> bool:
        return password_hash in {f"hashed:{plain_password}", f"legacy:{plain_password}"}

    def needs_rehash(self, password_hash: str) -> bool:
        return password_hash.startswith("legacy:")

    def dummy_verify(self) -> None:
        self.dummy_verifies += 1


class FakeEmailPort:
    def __init__(self):
        self.verification_emails: list[dict] = []
        self.reset_emails: list[dict] = []
        self.fail = False

    def send_verification_email(self, *, to: str, name: str, verify_url: str) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.verification_emails.append({"to": to, "name": name, "url": verify_url})

    def send_password_reset_email(self, *, to: str, name: str, reset_url: str) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.reset_emails.append({"to": to, "name": name, "url": reset_url})


class FakeOAuthProvider:
    provider = "GOOGLE"

    def __init__(self, profile: OAuthProfile | None = None):
        self.profile = profile or OAuthProfile(
            subject="google-sub-1",
            email="alice@example.com",
            email_verified=True,
            name="Alice",
        )
        self.exchanges: list[dict] = []
        self.exchange_error: Exception | None = None

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        query = urlencode(
            {
                "client_id": "client-id",
                "response_type": "code",
                "state": state,
                "code_challenge": code_challenge,
                "code_challenge_method": "S256",
            }
        )
        return f"https://accounts.example.test/auth?{query}"

    def exchange_code(self, *, code: str, code_verifier: str) -> OAuthTokenSet:
        if self.exchange_error is not None:
            raise self.exchange_error
        self.exchanges.append({"code": code, "code_verifier": code_verifier})
        return OAuthTokenSet(access_token="provider-access", token_type="Bearer", expires_in=3600, id_token=None)

    def fetch_profile(self, *, access_token: str) -> OAuthProfile:
        return self.profile


def token_from_url(url: str) -> str:
    return parse_qs(urlsplit(url).query)["token"][0]


def make_settings(**overrides) -> Settings:
    values = {
        "postgres_dsn": "postgresql://unused",
        "jwt_secret": JWT_SECRET,
        "jwt_access_ttl_minutes": 15,
        "jwt_leeway_seconds": 0,
        "refresh_ttl_days": 30,
        "frontend_url": FRONTEND_URL,
        "app_env": "test",
        "google_oauth_client_id": "client-id",
        "google_oauth_client_secret": "client-secret",
        "google_oauth_redirect_uri": "http://localhost:8000/api/v1/auth/oauth/google/callback",
        "oauth_http_timeout_seconds": 5.0,
        "email_token_ttl_hours": 24,
        "password_reset_ttl_minutes": 30,
        "log_level": "INFO",
        "db_auto_create": False,
        "rate_limit_enabled": True,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def auth_port() -> FakeAuthPort:
    return FakeAuthPort()


@pytest.fixture
def token_service() -> JwtTokenService:
    return JwtTokenService(jwt_secret=JWT_SECRET, access_ttl_minutes=15, refresh_ttl_days=30)


@pytest.fixture
def password_hasher() -> FakePasswordHasher:
    return FakePasswordHasher()


@pytest.fixture
def email_port() -> FakeEmailPort:
    return FakeEmailPort()


@pytest.fixture
def oauth_provider() -> FakeOAuthProvider:
    return FakeOAuthProvider()


@pytest.fixture
def session_manager(auth_port, token_service) -> SessionManager:
    return SessionManager(auth_port=auth_port, token_port=token_service)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(auth_port, token_service, password_hasher, email_port, oauth_provider, settings):
    from career_auth.api import deps
    from career_auth.main import app

    rate_limiter = RequestRateLimiter(enabled=settings.rate_limit_enabled)
    app.dependency_overrides[deps.get_app_settings] = lambda: settings
    app.dependency_overrides[deps.get_accounts_repository] = lambda: auth_port
    app.dependency_overrides[deps.get_token_service] = lambda: token_service
    app.dependency_overrides[deps.get_password_hasher] = lambda: password_hasher
    app.dependency_overrides[deps.get_email_sender] = lambda: email_port
    app.dependency_overrides[deps.get_oauth_providers] = lambda: {"GOOGLE": oauth_provider}
    app.dependency_overrides[deps.get_rate_limiter] = lambda: rate_limiter

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
