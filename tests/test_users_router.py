from __future__ import annotations

from datetime import datetime, timezone

from tests.conftest import FRONTEND_ORIGIN


REFRESH_COOKIE = "career_tracker_refresh"


def _login(client, email: str = "alice@example.com", password: str = "Passw0rd!"):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def _bearer(body: dict) -> dict:
    return {"Authorization": f"Bearer {body['token']}"}


def _verified_user(auth_port, **overrides):
    return auth_port.add_user(email_verified_at=datetime.now(timezone.utc), **overrides)


def test_get_me_returns_profile(client, auth_port):
    _verified_user(auth_port)
    body = _login(client).json()

    response = client.get("/api/v1/users/me", headers=_bearer(body))

    assert response.status_code == 200
    me = response.json()
    assert me["id"] == "user-1"
    assert me["hasPassword"] is True
    assert me["emailVerified"] is True
    assert me["isAdmin"] is False


def test_update_me_rejects_blank_name(client, auth_port):
    _verified_user(auth_port)
    body = _login(client).json()

    response = client.patch("/api/v1/users/me", headers=_bearer(body), json={"name": "   "})

    assert response.status_code == 400
    assert response.json() == {"message": "Name cannot be empty"}


def test_change_password_revokes_sessions(client, auth_port):
    _verified_user(auth_port)
    body = _login(client).json()
    old_cookie = client.cookies.get(REFRESH_COOKIE)

    wrong = client.post(
        "/api/v1/users/change-password",
        headers=_bearer(body),
        json={"oldPassword": "nope", "newPassword": "N3w-Passw0rd!"},
    )
    assert wrong.status_code == 401
    assert wrong.json() == {"message": "Invalid credentials"}

    response = client.post(
        "/api/v1/users/change-password",
        headers=_bearer(body),
        json={"oldPassword": "Passw0rd!", "newPassword": "N3w-Passw0rd!"},
    )
    assert response.json() == {"ok": True}
    assert auth_port.live_sessions("user-1") == []

    client.cookies.clear()
    replay = client.post(
        "/api/v1/auth/refresh",
        headers={
            "Origin": FRONTEND_ORIGIN,
            "X-CSRF-Token": body["csrfToken"],
            "Cookie": f"{REFRESH_COOKIE}={old_cookie}",
        },
    )
    assert replay.status_code == 401
    assert _login(client).status_code == 401
    assert _login(client, password="N3w-Passw0rd!").status_code == 200


def test_change_password_requires_verified_email(client, auth_port):
    auth_port.add_user()
    body = _login(client).json()

    response = client.post(
        "/api/v1/users/change-password",
        headers=_bearer(body),
        json={"oldPassword": "Passw0rd!", "newPassword": "N3w-Passw0rd!"},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "EMAIL_NOT_VERIFIED"


def test_deactivate_blocks_access_until_next_login(client, auth_port):
    _verified_user(auth_port)
    body = _login(client).json()

    assert client.delete("/api/v1/users/deactivate", headers=_bearer(body)).json() == {"ok": True}

    blocked = client.get("/api/v1/users/me", headers=_bearer(body))
    assert blocked.status_code == 403
    assert blocked.json() == {"message": "Account deactivated", "code": "ACCOUNT_DEACTIVATED"}
    assert auth_port.live_sessions("user-1") == []

    again = _login(client)
    assert again.status_code == 200
    assert again.json()["user"]["isActive"] is True
    assert client.get("/api/v1/users/me", headers=_bearer(again.json())).status_code == 200


def test_delete_account_invalidates_access_token(client, auth_port):
    _verified_user(auth_port)
    body = _login(client).json()

    assert client.delete("/api/v1/users/delete", headers=_bearer(body)).json() == {"ok": True}

    response = client.get("/api/v1/users/me", headers=_bearer(body))
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized", "code": "UNAUTHORIZED"}
    assert auth_port.users == {}


def test_admin_routes_require_admin_role(client, auth_port):
    _verified_user(auth_port)
    body = _login(client).json()

    response = client.post("/api/v1/admin/users/user-1/revoke-sessions", headers=_bearer(body))

    assert response.status_code == 403
    assert response.json() == {"message": "Forbidden", "code": "ADMIN_FORBIDDEN"}
    assert len(auth_port.live_sessions("user-1")) == 1


def test_admin_can_revoke_and_purge_sessions(client, auth_port):
    _verified_user(auth_port, id="admin-1", email="admin@example.com", is_admin=True)
    _verified_user(auth_port)
    _login(client)
    _login(client)
    admin = _login(client, email="admin@example.com").json()

    revoked = client.post("/api/v1/admin/users/user-1/revoke-sessions", headers=_bearer(admin))
    assert revoked.json() == {"revoked": 2}

    missing = client.post("/api/v1/admin/users/ghost/revoke-sessions", headers=_bearer(admin))
    assert missing.status_code == 404
    assert missing.json() == {"message": "User not found"}

    purged = client.post("/api/v1/admin/sessions/purge", params={"olderThanDays": 0}, headers=_bearer(admin))
    assert purged.status_code == 200
    assert purged.json() == {"deleted": 2}
    assert len(auth_port.live_sessions("admin-1")) == 1
