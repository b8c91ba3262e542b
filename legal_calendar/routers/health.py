from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


def _health(request: Request) -> dict:
    boot = request.app.state.boot
    return {
        "status": "ok" if boot.ready else ("degraded" if boot.finished else "starting"),
        "database": "connected" if boot.store_connected else "disconnected",
        "state": boot.state.value,
        "backend": boot.store.kind,
        "degraded_collections": sorted(boot.degraded),
    }


@router.get("/")
def root(request: Request):
    return _health(request)


@router.get("/api/health")
def health(request: Request):
    return _health(request)
