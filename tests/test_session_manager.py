from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from career_auth.domain.exceptions import InvalidSessionError


def test_create_session_stores_only_hashes(auth_port, session_manager, token_service):
    auth_port.add_user()

    issued = session_manager.create_session(user_id="user-1", user_agent="pytest", ip="127.0.0.1")

    stored = auth_port.sessions[issued.session_id]
    assert stored.refresh_token_hash == token_service.hash_opaque_token(value=issued.refresh_token)
    assert stored.csrf_token_hash == token_service.hash_opaque_token(value=issued.csrf_token)
    assert issued.refresh_token not in {stored.refresh_token_hash, stored.csrf_token_hash}
    assert stored.user_agent == "pytest"
    assert stored.expires_at == issued.expires_at


def test_rotate_revokes_old_session_and_issues_new_pair(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")

    rotated = session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=issued.csrf_token)

    assert rotated.previous_session_id == issued.session_id
    assert rotated.session.refresh_token != issued.refresh_token
    assert rotated.session.csrf_token != issued.csrf_token
    assert auth_port.sessions[issued.session_id].revoked_at is not None
    assert [s.id for s in auth_port.live_sessions("user-1")] == [rotated.session.session_id]


def test_rotated_refresh_token_cannot_be_reused(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")
    session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=issued.csrf_token)

    with pytest.raises(InvalidSessionError):
        session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=issued.csrf_token)


def test_rotate_requires_the_bound_csrf_token(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")
    other = session_manager.create_session(user_id="user-1")

    with pytest.raises(InvalidSessionError):
        session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=other.csrf_token)
    assert auth_port.sessions[issued.session_id].revoked_at is None


def test_rotate_rejects_blank_inputs(session_manager):
    with pytest.raises(InvalidSessionError):
        session_manager.rotate_session(refresh_token="  ", csrf_token="csrf")


def test_rotate_rejects_expired_session(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")
    stored = auth_port.sessions[issued.session_id]
    auth_port.sessions[stored.id] = replace(stored, expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))

    with pytest.raises(InvalidSessionError):
        session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=issued.csrf_token)


def test_rotate_for_inactive_user_rolls_back(auth_port, session_manager):
    auth_port.add_user(is_active=False)
    issued = session_manager.create_session(user_id="user-1")

    with pytest.raises(InvalidSessionError):
        session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=issued.csrf_token)
    assert auth_port.sessions[issued.session_id].revoked_at is None
    assert len(auth_port.sessions) == 1


def test_serialized_refreshes_of_one_cookie_let_only_one_through(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")
    barrier = threading.Barrier(2)
    outcomes: list[str] = []
    lock = threading.Lock()

    def _refresh():
        barrier.wait()
        try:
            session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=issued.csrf_token)
            result = "ok"
        except InvalidSessionError:
            result = "rejected"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=_refresh) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["ok", "rejected"]
    assert len(auth_port.live_sessions("user-1")) == 1


def test_reissue_csrf_rebinds_session(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")

    csrf_token = session_manager.reissue_csrf_token(refresh_token=issued.refresh_token)

    assert csrf_token is not None and csrf_token != issued.csrf_token
    with pytest.raises(InvalidSessionError):
        session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=issued.csrf_token)
    rotated = session_manager.rotate_session(refresh_token=issued.refresh_token, csrf_token=csrf_token)
    assert rotated.user.id == "user-1"


def test_reissue_csrf_for_unknown_session_returns_none(session_manager):
    assert session_manager.reissue_csrf_token(refresh_token="unknown") is None
    assert session_manager.reissue_csrf_token(refresh_token="") is None


def test_revoke_by_refresh_token(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")

    assert session_manager.revoke_by_refresh_token(refresh_token=issued.refresh_token, csrf_token="wrong") is False
    assert session_manager.revoke_by_refresh_token(
        refresh_token=issued.refresh_token,
        csrf_token=issued.csrf_token,
    ) is True
    assert session_manager.revoke_by_refresh_token(
        refresh_token=issued.refresh_token,
        csrf_token=issued.csrf_token,
    ) is False


def test_revoke_session_is_idempotent(auth_port, session_manager):
    auth_port.add_user()
    issued = session_manager.create_session(user_id="user-1")

    assert session_manager.revoke_session(session_id=issued.session_id) is True
    assert session_manager.revoke_session(session_id=issued.session_id) is False


def test_revoke_all_sessions_for_user_leaves_other_users_alone(auth_port, session_manager):
    auth_port.add_user()
    auth_port.add_user(id="user-2", email="bob@example.com")
    for _ in range(3):
        session_manager.create_session(user_id="user-1")
    session_manager.create_session(user_id="user-2")

    assert session_manager.revoke_all_sessions_for_user(user_id="user-1") == 3
    assert auth_port.live_sessions("user-1") == []
    assert len(auth_port.live_sessions("user-2")) == 1


def test_purge_removes_only_old_inactive_sessions(auth_port, session_manager):
    auth_port.add_user()
    old = session_manager.create_session(user_id="user-1")
    recent = session_manager.create_session(user_id="user-1")
    live = session_manager.create_session(user_id="user-1")
    now = datetime.now(timezone.utc)
    auth_port.sessions[old.session_id] = replace(
        auth_port.sessions[old.session_id],
        revoked_at=now - timedelta(days=40),
    )
    auth_port.sessions[recent.session_id] = replace(
        auth_port.sessions[recent.session_id],
        revoked_at=now - timedelta(days=1),
    )

    deleted = session_manager.purge_revoked_sessions(older_than=now - timedelta(days=30))

    assert deleted == 1
    assert set(auth_port.sessions) == {recent.session_id, live.session_id}
