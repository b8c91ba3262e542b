from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from legal_calendar.services.auth_service import InvalidCredentialsError, WeakPasswordError

from .deps import bearer_token, get_auth_service, get_content_service, require_admin, respond

router = APIRouter(prefix="/api/admin", tags=["admin-auth"])


class LoginPayload(BaseModel):
    username: str = ""
    password: str = ""


class ChangePasswordPayload(BaseModel):
    current_password: str = ""
    new_password: str = ""


@router.post("/login")
def login(payload: LoginPayload, request: Request):
    blocked = get_content_service(request).guard("admin_users")
    if blocked:
        return respond(blocked)
    try:
        result = get_auth_service(request).login(payload.username, payload.password)
    except InvalidCredentialsError as exc:
        return JSONResponse({"error": exc.message}, status_code=401)
    return {
        "token": result.token,
        "user": {"username": result.username, "full_name": result.full_name, "role": result.role},
    }


@router.post("/logout")
def logout(request: Request):
    get_auth_service(request).logout(bearer_token(request))
    return {"ok": True}


@router.post("/change-password")
def change_password(payload: ChangePasswordPayload, request: Request, username: str = Depends(require_admin)):
    blocked = get_content_service(request).guard("admin_users")
    if blocked:
        return respond(blocked)
    try:
        get_auth_service(request).change_password(
            username,
            payload.current_password,
            payload.new_password,
            token=bearer_token(request),
        )
    except (InvalidCredentialsError, WeakPasswordError) as exc:
        return JSONResponse({"error": exc.message}, status_code=400)
    return {"ok": True}
