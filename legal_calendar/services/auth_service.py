"""
Admin authentication use cases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from legal_calendar.core.security import hash_password, needs_rehash, verify_password
from legal_calendar.repositories.content_repository import ContentRepository
from legal_calendar.services.session_service import SessionStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Base class for authentication-related exceptions."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCredentialsError(AuthError):
    pass


class WeakPasswordError(AuthError):
    pass


@dataclass
class LoginSuccess:
    token: str
    username: str
    full_name: Optional[str]
    role: Optional[str]


@dataclass
class AuthService:
    """Login, logout and password change for admin accounts."""

    repository: ContentRepository
    sessions: SessionStore

    def _account(self, username: str) -> Optional[dict]:
        return self.repository.find_by("admin_users", "username", (username or "").strip())

    def login(self, username: str, password: str) -> LoginSuccess:
        account = self._account(username)
        if not account or not verify_password(password or "", account.get("password_hash")):
            logger.info("Rejected admin login for %r", username)
            raise InvalidCredentialsError("Sai tên đăng nhập hoặc mật khẩu")
        if needs_rehash(account.get("password_hash")):
            self.repository.update("admin_users", account["id"], {"password_hash": hash_password(password)})
        token = self.sessions.issue(account["username"])
        logger.info("Admin %s logged in", account["username"])
        return LoginSuccess(token, account["username"], account.get("full_name"), account.get("role"))

    def logout(self, token: str | None) -> None:
        self.sessions.revoke(token)

    def change_password(self, username: str, current_password: str, new_password: str, *, token: str | None = None) -> None:
        account = self._account(username)
        if not account or not verify_password(current_password or "", account.get("password_hash")):
            raise InvalidCredentialsError("Mật khẩu hiện tại không đúng")
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(f"Mật khẩu mới phải có ít nhất {MIN_PASSWORD_LENGTH} ký tự")
        self.repository.update("admin_users", account["id"], {"password_hash": hash_password(new_password)})
        # Other sessions of this admin stop working; the caller's token stays valid.
        self.sessions.revoke_user(account["username"], keep=token)
        logger.info("Admin %s changed password", account["username"])
