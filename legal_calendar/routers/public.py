from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Request

from legal_calendar.domain.collections import COLLECTIONS
from legal_calendar.domain.errors import NotFoundError
from legal_calendar.services.content_service import OperationResult

from .deps import get_content_service, respond

router = APIRouter(prefix="/api", tags=["public"])

SUPPORT_REQUEST_FIELDS = ("name", "email", "phone", "category", "subject", "message")


def _list(request: Request, collection: str, **forced: Any):
    filters: dict[str, Any] = dict(request.query_params)
    if "is_active" in COLLECTIONS[collection].filterable:
        # The app only ever sees published rows.
        filters["is_active"] = "true"
    filters.update(forced)
    return respond(get_content_service(request).execute("list", collection, filters=filters))


def _get_published(request: Request, collection: str, record_id: str):
    result = get_content_service(request).execute("get", collection, record_id)
    if result.ok and not result.data.get("is_active"):
        return respond(OperationResult.failure("not_found", NotFoundError.default_message))
    return respond(result)


@router.get("/settings")
def settings_map(request: Request):
    return respond(get_content_service(request).settings_map())


@router.get("/events")
def list_events(request: Request):
    return _list(request, "events")


@router.get("/events/{record_id}")
def get_event(record_id: str, request: Request):
    return _get_published(request, "events", record_id)


@router.get("/news")
def list_news(request: Request):
    return _list(request, "news")


@router.get("/news/{record_id}")
def get_news(record_id: str, request: Request):
    return _get_published(request, "news", record_id)


@router.get("/agencies")
def list_agencies(request: Request):
    return _list(request, "agencies")


@router.get("/provinces")
def list_provinces(request: Request):
    return _list(request, "provinces")


@router.get("/provinces/{record_id}/wards")
def list_wards(record_id: str, request: Request):
    svc = get_content_service(request)
    province = svc.execute("get", "provinces", record_id)
    if not province.ok:
        return respond(province)
    return _list(request, "wards", province_id=province.data["id"])


@router.get("/lawyers")
def list_lawyers(request: Request):
    return _list(request, "lawyers")


@router.get("/categories")
def list_categories(request: Request):
    return _list(request, "categories")


@router.get("/organizations")
def list_organizations(request: Request):
    return _list(request, "organizations")


@router.post("/support-requests")
def create_support_request(request: Request, payload: dict = Body(...)):
    fields = {key: payload[key] for key in SUPPORT_REQUEST_FIELDS if key in payload}
    result = get_content_service(request).execute("create", "support_requests", payload=fields)
    return respond(result, created=True)
