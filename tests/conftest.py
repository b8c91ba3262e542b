"""
Shared fixtures: temporary JSON and SQLite stores, a repository on top of
them and an environment for building the FastAPI app.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the package is importable during local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from legal_calendar.core import config as core_config
from legal_calendar.db import Base
from legal_calendar.db.graph import DependencyGraph
from legal_calendar.repositories.content_repository import ContentRepository
from legal_calendar.repositories.json_storage import JsonStore
from legal_calendar.repositories.sql_store import SqlStore


def _create_all(store) -> None:
    for name in DependencyGraph.from_metadata(Base.metadata).creation_order():
        store.create_collection(name)


@pytest.fixture()
def create_all():
    """Create every collection of the current schema on a store."""
    return _create_all


@pytest.fixture()
def json_store(tmp_path):
    return JsonStore(tmp_path / "data", Base.metadata)


@pytest.fixture()
def sql_store(tmp_path):
    """SQLite file under tmp_path; the engine is disposed so the file is not left locked on Windows."""
    store = SqlStore(f"sqlite:///{tmp_path / 'test.db'}", Base.metadata)
    yield store
    try:
        store.close()
    except Exception:
        pass


@pytest.fixture(params=["json", "sql"])
def store(request, tmp_path):
    if request.param == "json":
        yield JsonStore(tmp_path / "data", Base.metadata)
        return
    sql = SqlStore(f"sqlite:///{tmp_path / 'test.db'}", Base.metadata)
    yield sql
    try:
        sql.close()
    except Exception:
        pass


@pytest.fixture()
def repo(store):
    _create_all(store)
    return ContentRepository(store, Base.metadata)


@pytest.fixture()
def app_env(tmp_path, monkeypatch):
    """JSON-backed settings pointing at tmp_path; caches are reset on both ends."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("DEFAULT_ADMIN_USERNAME", "admin")
    monkeypatch.setenv("DEFAULT_ADMIN_PASSWORD", "secret123")
    monkeypatch.setenv("DB_CONNECT_ATTEMPTS", "1")
    monkeypatch.setenv("DB_CONNECT_RETRY_SECONDS", "0")
    core_config.get_settings.cache_clear()
    yield tmp_path / "data"
    core_config.get_settings.cache_clear()
