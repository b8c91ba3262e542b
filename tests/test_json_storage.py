from __future__ import annotations

import json

import pytest
from sqlalchemy import Column, MetaData, String, Table

from legal_calendar.db import Base
from legal_calendar.db.inspector import shapes_from_metadata
from legal_calendar.domain.collections import Join
from legal_calendar.domain.errors import MigrationError, StoreUnavailable
from legal_calendar.repositories.json_storage import JsonStore


def test_create_collection_writes_an_empty_array(json_store):
    assert json_store.create_collection("news") is True
    assert json_store.create_collection("news") is False
    path = json_store.data_dir / "news.json"
    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_insert_assigns_sequential_ids_and_leaves_no_temp_files(json_store):
    json_store.create_collection("categories")
    first = json_store.insert("categories", {"key": "tax", "name": "Thuế"})
    second = json_store.insert("categories", {"key": "report", "name": "Báo cáo"})
    assert (first["id"], second["id"]) == (1, 2)

    files = sorted(p.name for p in json_store.data_dir.iterdir())
    assert files == ["categories.json"]
    stored = json.loads((json_store.data_dir / "categories.json").read_text(encoding="utf-8"))
    assert stored[0]["name"] == "Thuế"


def test_observe_reports_shape(json_store):
    assert json_store.observe("provinces") is None

    json_store.create_collection("provinces")
    empty = json_store.observe("provinces")
    assert empty.pk_family is None
    assert "name" in empty.field_names

    json_store.insert("provinces", {"code": "hcm", "name": "TP. Hồ Chí Minh"})
    observed = json_store.observe("provinces")
    assert observed.pk_family == "integer"
    assert observed.field_names == {"id", "code", "name"}


def test_observe_detects_text_keys(json_store):
    json_store.data_dir.mkdir(parents=True)
    (json_store.data_dir / "provinces.json").write_text(
        json.dumps([{"id": "hcm", "name": "TP. Ho Chi Minh", "region": "south"}]),
        encoding="utf-8",
    )
    assert json_store.observe("provinces").pk_family == "text"


def test_corrupt_file_raises_migration_error(json_store):
    json_store.data_dir.mkdir(parents=True)
    (json_store.data_dir / "news.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(MigrationError):
        json_store.observe("news")


def test_missing_collection_is_unavailable(json_store):
    with pytest.raises(StoreUnavailable):
        json_store.select("events")


def test_add_fields_fills_defaults(json_store):
    json_store.data_dir.mkdir(parents=True)
    (json_store.data_dir / "news.json").write_text(json.dumps([{"id": 1, "title": "A"}]), encoding="utf-8")
    shape = shapes_from_metadata(Base.metadata)["news"]

    json_store.add_fields("news", [shape.field("is_hot"), shape.field("summary")])

    record = json_store.fetch("news", 1)
    assert record["is_hot"] is False
    assert record["summary"] is None
    assert record["title"] == "A"


def test_select_joins_tolerate_missing_parent(json_store):
    json_store.create_collection("provinces")
    json_store.create_collection("agencies")
    hcm = json_store.insert("provinces", {"code": "hcm", "name": "TP. Hồ Chí Minh"})
    json_store.insert("agencies", {"name": "Cuc Thue", "province_id": hcm["id"]})
    json_store.insert("agencies", {"name": "Orphan", "province_id": 99})

    rows = json_store.select("agencies", joins=(Join("province_id", "provinces", "province_name"),))
    names = {r["name"]: r["province_name"] for r in rows}
    assert names == {"Cuc Thue": "TP. Hồ Chí Minh", "Orphan": None}


def test_select_joins_tolerate_unreadable_parent(json_store):
    json_store.create_collection("agencies")
    json_store.create_collection("events")
    json_store.insert("events", {"title": "GTGT", "agency_id": 1})
    (json_store.data_dir / "agencies.json").write_text("[{broken", encoding="utf-8")

    rows = json_store.select("events", joins=(Join("agency_id", "agencies", "agency_name"),))
    assert [(r["title"], r["agency_name"]) for r in rows] == [("GTGT", None)]


def test_update_and_delete_where(json_store):
    json_store.create_collection("wards")
    json_store.insert("wards", {"province_id": 1, "name": "A"})
    json_store.insert("wards", {"province_id": 1, "name": "B"})
    json_store.insert("wards", {"province_id": 2, "name": "C"})

    updated = json_store.update("wards", 3, {"name": "C2", "id": 50})
    assert updated == {"id": 3, "province_id": 2, "name": "C2"}
    assert json_store.update("wards", 42, {"name": "x"}) is None

    assert json_store.delete_where("wards", "province_id", 1) == 2
    assert json_store.count("wards") == 1
    assert json_store.delete("wards", 3) is True
    assert json_store.delete("wards", 3) is False


def test_text_keyed_collections_get_tokens(tmp_path):
    metadata = MetaData()
    Table("tickets", metadata, Column("id", String(64), primary_key=True), Column("subject", String(100)))
    store = JsonStore(tmp_path, metadata)
    store.create_collection("tickets")

    record = store.insert("tickets", {"subject": "help"})
    assert record["id"].startswith("tickets_")
    assert store.observe("tickets").pk_family == "text"
