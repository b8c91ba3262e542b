"""Admin console endpoints; every route requires a bearer token."""
from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from legal_calendar.domain.collections import COLLECTIONS

from .deps import get_content_service, require_admin, respond

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _collection(name: str) -> str | None:
    """Map a URL segment (``support-requests``) to an admin-exposed collection."""
    key = name.replace("-", "_")
    spec = COLLECTIONS.get(key)
    if spec is None or not spec.admin_exposed:
        return None
    return key


def _unknown_collection() -> JSONResponse:
    return JSONResponse({"error": "Không tìm thấy danh mục", "error_kind": "not_found"}, status_code=404)


@router.get("/stats")
def stats(request: Request):
    return respond(get_content_service(request).stats())


@router.get("/support-requests/stats")
def support_stats(request: Request):
    return respond(get_content_service(request).support_stats())


@router.put("/settings")
def update_settings(request: Request, payload: dict = Body(...)):
    return respond(get_content_service(request).update_settings(payload))


@router.get("/{collection}")
def list_records(collection: str, request: Request):
    name = _collection(collection)
    if name is None:
        return _unknown_collection()
    filters = dict(request.query_params)
    return respond(get_content_service(request).execute("list", name, filters=filters))


@router.post("/{collection}")
def create_record(collection: str, request: Request, payload: dict = Body(...)):
    name = _collection(collection)
    if name is None:
        return _unknown_collection()
    return respond(get_content_service(request).execute("create", name, payload=payload), created=True)


@router.get("/{collection}/{record_id}")
def get_record(collection: str, record_id: str, request: Request):
    name = _collection(collection)
    if name is None:
        return _unknown_collection()
    return respond(get_content_service(request).execute("get", name, record_id))


@router.put("/{collection}/{record_id}")
def update_record(collection: str, record_id: str, request: Request, payload: dict = Body(...)):
    name = _collection(collection)
    if name is None:
        return _unknown_collection()
    return respond(get_content_service(request).execute("update", name, record_id, payload=payload))


@router.delete("/{collection}/{record_id}")
def delete_record(collection: str, record_id: str, request: Request):
    name = _collection(collection)
    if name is None:
        return _unknown_collection()
    return respond(get_content_service(request).execute("delete", name, record_id))
