from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from legal_calendar.core.security import hash_password, verify_password
from legal_calendar.services.auth_service import AuthService, InvalidCredentialsError, WeakPasswordError
from legal_calendar.services.session_service import SessionStore


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def auth(repo, clock):
    repo.create("admin_users", {"username": "admin", "password_hash": hash_password("secret123"), "role": "super_admin"})
    return AuthService(repo, SessionStore(900, clock=clock))


def test_session_expires_after_ttl(clock):
    sessions = SessionStore(900, clock=clock)
    token = sessions.issue("admin")
    clock.advance(899)
    assert sessions.lookup(token) == "admin"
    clock.advance(1)
    assert sessions.lookup(token) is None
    assert sessions.lookup(None) is None


def test_revoke_user_keeps_current_token(clock):
    sessions = SessionStore(900, clock=clock)
    mine, other, someone_else = sessions.issue("admin"), sessions.issue("admin"), sessions.issue("editor")
    sessions.revoke_user("admin", keep=mine)
    assert sessions.lookup(mine) == "admin"
    assert sessions.lookup(other) is None
    assert sessions.lookup(someone_else) == "editor"


def test_login_issues_token(auth):
    result = auth.login(" admin ", "secret123")
    assert result.username == "admin"
    assert result.role == "super_admin"
    assert auth.sessions.lookup(result.token) == "admin"


def test_login_rejects_unknown_user_and_bad_password(auth):
    with pytest.raises(InvalidCredentialsError):
        auth.login("admin", "wrong")
    with pytest.raises(InvalidCredentialsError):
        auth.login("ghost", "secret123")


def test_unprefixed_hash_never_verifies(auth, repo):
    row = repo.find_by("admin_users", "username", "admin")
    repo.update("admin_users", row["id"], {"password_hash": "$2b$12$legacybcrypthash"})
    assert not verify_password("secret123", "$2b$12$legacybcrypthash")
    with pytest.raises(InvalidCredentialsError):
        auth.login("admin", "secret123")


def test_logout_revokes_token(auth):
    token = auth.login("admin", "secret123").token
    auth.logout(token)
    assert auth.sessions.lookup(token) is None


def test_change_password(auth, repo):
    token = auth.login("admin", "secret123").token
    other = auth.login("admin", "secret123").token

    with pytest.raises(InvalidCredentialsError):
        auth.change_password("admin", "wrong", "newpass1", token=token)
    with pytest.raises(WeakPasswordError):
        auth.change_password("admin", "secret123", "abc", token=token)

    auth.change_password("admin", "secret123", "newpass1", token=token)

    stored = repo.find_by("admin_users", "username", "admin")["password_hash"]
    assert verify_password("newpass1", stored)
    assert auth.sessions.lookup(token) == "admin"
    assert auth.sessions.lookup(other) is None
