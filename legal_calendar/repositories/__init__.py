"""Storage backends and the generic repository built on them."""
from __future__ import annotations

from legal_calendar.core.config import Settings
from legal_calendar.db import Base

from .base import StoreBackend
from .json_storage import JsonStore
from .sql_store import SqlStore


def build_store(settings: Settings) -> StoreBackend:
    """Pick the backend named by STORAGE_BACKEND."""
    if settings.storage_backend == "sql":
        return SqlStore(settings.database_url, Base.metadata)
    return JsonStore(settings.data_dir, Base.metadata)


__all__ = ["StoreBackend", "JsonStore", "SqlStore", "build_store"]
