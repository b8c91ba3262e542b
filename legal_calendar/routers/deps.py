"""Shared router helpers: service lookup, admin guard, result -> response."""
from __future__ import annotations

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from legal_calendar.services.auth_service import AuthService
from legal_calendar.services.content_service import GENERIC_ERROR, ContentService, OperationResult
from legal_calendar.services.session_service import SessionStore

STATUS_BY_KIND = {
    "validation": 400,
    "not_found": 404,
    "conflict": 409,
    "store_unavailable": 503,
}


def _state(request: Request, name: str):
    svc = getattr(getattr(request.app, "state", None), name, None)
    if svc is None:
        raise RuntimeError(f"{name} is not configured")
    return svc


def get_content_service(request: Request) -> ContentService:
    return _state(request, "content_service")


def get_auth_service(request: Request) -> AuthService:
    return _state(request, "auth_service")


def get_sessions(request: Request) -> SessionStore:
    return _state(request, "sessions")


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_admin(request: Request) -> str:
    """Dependency: the username behind a valid bearer token, else 401."""
    username = get_sessions(request).lookup(bearer_token(request))
    if not username:
        raise HTTPException(401, "Chưa đăng nhập hoặc phiên đã hết hạn")
    request.state.admin_username = username
    return username


def respond(result: OperationResult, *, created: bool = False) -> JSONResponse:
    if result.ok:
        return JSONResponse(result.data, status_code=201 if created else 200)
    status = STATUS_BY_KIND.get(result.error_kind or "", 500)
    message = result.message if status != 500 else GENERIC_ERROR
    return JSONResponse({"error": message, "error_kind": result.error_kind}, status_code=status)
