"""
Smoke tests for SqlStore against a temporary SQLite database.
"""
from __future__ import annotations

import pytest
from sqlalchemy import inspect, text

from legal_calendar.db import Base
from legal_calendar.db.inspector import shapes_from_metadata
from legal_calendar.domain.collections import Join
from legal_calendar.domain.errors import ConflictError, StoreUnavailable
from legal_calendar.repositories.sql_store import SqlStore


def test_ping_fails_for_unreachable_database(tmp_path):
    store = SqlStore(f"sqlite:///{tmp_path / 'missing' / 'nested' / 'x.db'}", Base.metadata)
    with pytest.raises(StoreUnavailable):
        store.ping()


def test_ping_fails_without_url():
    with pytest.raises(StoreUnavailable):
        SqlStore("", Base.metadata).ping()


def test_create_and_observe(sql_store):
    sql_store.ping()
    assert sql_store.observe("provinces") is None
    assert sql_store.create_collection("provinces") is True
    assert sql_store.create_collection("provinces") is False

    observed = sql_store.observe("provinces")
    assert observed.pk_family == "integer"
    assert {"id", "code", "name", "region", "created_at", "updated_at"} <= observed.field_names


def test_observe_text_primary_key(sql_store):
    with sql_store.engine.begin() as conn:
        conn.execute(text("CREATE TABLE provinces (id TEXT PRIMARY KEY, name TEXT)"))
    assert sql_store.observe("provinces").pk_family == "text"


def test_insert_select_with_join(sql_store):
    sql_store.create_collection("provinces")
    sql_store.create_collection("agencies")
    hcm = sql_store.insert("provinces", {"code": "hcm", "name": "TP. Hồ Chí Minh"})
    sql_store.insert("agencies", {"name": "Cuc Thue", "province_id": hcm["id"], "is_active": True})
    sql_store.insert("agencies", {"name": "Bo Tai chinh", "province_id": None, "is_active": False})

    rows = sql_store.select("agencies", joins=(Join("province_id", "provinces", "province_name"),))
    assert [(r["name"], r["province_name"]) for r in rows] == [
        ("Cuc Thue", "TP. Hồ Chí Minh"),
        ("Bo Tai chinh", None),
    ]
    assert isinstance(rows[0]["created_at"], str)
    assert sql_store.count("agencies", {"is_active": True}) == 1


def test_unique_violation_is_a_conflict(sql_store):
    sql_store.create_collection("categories")
    sql_store.insert("categories", {"key": "tax", "name": "Thuế"})
    with pytest.raises(ConflictError):
        sql_store.insert("categories", {"key": "tax", "name": "Again"})


def test_add_fields_alters_in_place(sql_store):
    with sql_store.engine.begin() as conn:
        conn.execute(text("CREATE TABLE news (id INTEGER PRIMARY KEY AUTOINCREMENT, title VARCHAR(500) NOT NULL)"))
        conn.execute(text("INSERT INTO news (title) VALUES ('Old headline')"))
    shape = shapes_from_metadata(Base.metadata)["news"]
    missing = [f for f in shape.fields if f.name not in {"id", "title"}]

    sql_store.add_fields("news", missing)

    columns = {c["name"] for c in inspect(sql_store.engine).get_columns("news")}
    assert set(shape.field_names) <= columns
    row = sql_store.fetch("news", 1)
    assert row["title"] == "Old headline"
    assert row["is_hot"] in (False, 0)
    assert row["is_active"] in (True, 1)
    assert row["created_at"] is not None


def test_drop_collection_by_name(sql_store):
    sql_store.create_collection("categories")
    sql_store.drop_collection("categories")
    assert sql_store.observe("categories") is None
    sql_store.drop_collection("categories")


def test_update_delete(sql_store):
    sql_store.create_collection("provinces")
    sql_store.create_collection("wards")
    p = sql_store.insert("provinces", {"code": "hn", "name": "Hà Nội"})
    w = sql_store.insert("wards", {"province_id": p["id"], "name": "Hoàn Kiếm"})

    assert sql_store.update("wards", w["id"], {"name": "Ba Đình"})["name"] == "Ba Đình"
    assert sql_store.update("wards", 999, {"name": "x"}) is None
    assert sql_store.delete_where("wards", "province_id", p["id"]) == 1
    assert sql_store.delete("provinces", p["id"]) is True
    assert sql_store.delete("provinces", p["id"]) is False
