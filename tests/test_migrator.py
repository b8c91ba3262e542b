from __future__ import annotations

import json

import pytest
from sqlalchemy import text

from legal_calendar.db import Base
from legal_calendar.db.graph import DependencyGraph
from legal_calendar.db.inspector import SchemaInspector, ShapeReport, ShapeState, shapes_from_metadata
from legal_calendar.db.migrator import MigrationPlan, Migrator, StepAction
from legal_calendar.domain.errors import MigrationError
from legal_calendar.repositories.json_storage import JsonStore

SHAPES = shapes_from_metadata(Base.metadata)


def _steps(plan: MigrationPlan) -> list[tuple[str, str]]:
    return [(s.action.value, s.collection) for s in plan]


def test_graph_orders_parents_first():
    graph = DependencyGraph.from_metadata(Base.metadata)
    order = graph.creation_order()
    assert order.index("provinces") < order.index("wards") < order.index("organizations")
    assert order.index("agencies") < order.index("events")
    assert graph.dependents("wards") == {"organizations"}
    assert {"wards", "agencies", "events", "lawyers", "organizations"} <= graph.dependents("provinces")


def test_graph_rejects_cycles():
    with pytest.raises(ValueError):
        DependencyGraph({"a": ["b"], "b": ["a"]})


def test_rebuild_drops_dependents_before_parent():
    graph = DependencyGraph({"provinces": [], "wards": ["provinces"], "organizations": ["provinces", "wards"]})
    migrator = Migrator(store=None, shapes=SHAPES, graph=graph)
    report = ShapeReport("provinces", ShapeState.LEGACY, "integer", "text", rebuild=True)

    plan = migrator.plan(report)

    assert _steps(plan) == [
        ("drop", "organizations"),
        ("drop", "wards"),
        ("drop", "provinces"),
        ("create", "provinces"),
        ("create", "wards"),
        ("create", "organizations"),
    ]


def test_plans_for_absent_current_and_alterable():
    graph = DependencyGraph.from_metadata(Base.metadata)
    migrator = Migrator(store=None, shapes=SHAPES, graph=graph)

    assert _steps(migrator.plan(ShapeReport("news", ShapeState.ABSENT, "integer"))) == [("create", "news")]
    assert not migrator.plan(ShapeReport("news", ShapeState.CURRENT, "integer", "integer"))

    alter = migrator.plan(ShapeReport("news", ShapeState.LEGACY, "integer", "integer", missing_fields=("is_hot",)))
    assert [(s.action, s.fields) for s in alter] == [(StepAction.ALTER, ("is_hot",))]


def test_alter_is_dropped_when_collection_is_rebuilt():
    graph = DependencyGraph.from_metadata(Base.metadata)
    migrator = Migrator(store=None, shapes=SHAPES, graph=graph)
    plan = migrator.plan_all(
        [
            ShapeReport("provinces", ShapeState.LEGACY, "integer", "text", rebuild=True),
            ShapeReport("wards", ShapeState.LEGACY, "integer", "integer", missing_fields=("code",)),
        ]
    )
    assert all(step.action is not StepAction.ALTER for step in plan)
    assert ("create", "wards") in _steps(plan)


def test_text_keyed_provinces_are_rebuilt_with_integer_keys_sql(sql_store, create_all):
    create_all(sql_store)
    sql_store.drop_collection("provinces")
    with sql_store.engine.begin() as conn:
        conn.execute(text("CREATE TABLE provinces (id TEXT PRIMARY KEY, name TEXT, region TEXT)"))
        conn.execute(text("INSERT INTO provinces (id, name, region) VALUES ('hcm', 'TP. Ho Chi Minh', 'south')"))

    graph = DependencyGraph.from_metadata(Base.metadata)
    report = SchemaInspector(sql_store, SHAPES).classify("provinces")
    assert report.state is ShapeState.LEGACY
    assert report.rebuild

    migrator = Migrator(sql_store, SHAPES, graph)
    plan = migrator.plan(report)
    drops = MigrationPlan(tuple(s for s in plan if s.action is StepAction.DROP))
    creates = MigrationPlan(tuple(s for s in plan if s.action is StepAction.CREATE))

    assert migrator.apply(drops).ok
    assert sql_store.observe("provinces") is None
    assert sql_store.observe("wards") is None

    assert migrator.apply(creates).ok
    assert sql_store.observe("provinces").pk_family == "integer"
    assert SchemaInspector(sql_store, SHAPES).classify("provinces").state is ShapeState.CURRENT


def test_text_keyed_provinces_are_rebuilt_json(json_store):
    json_store.data_dir.mkdir(parents=True)
    (json_store.data_dir / "provinces.json").write_text(
        json.dumps([{"id": "hcm", "name": "TP. Ho Chi Minh"}]), encoding="utf-8"
    )
    json_store.create_collection("wards")
    report = SchemaInspector(json_store, SHAPES).classify("provinces")
    assert report.state is ShapeState.LEGACY

    migrator = Migrator(json_store, SHAPES, DependencyGraph.from_metadata(Base.metadata))
    outcome = migrator.apply(migrator.plan(report))

    assert outcome.ok
    assert json.loads((json_store.data_dir / "provinces.json").read_text(encoding="utf-8")) == []
    assert ("drop", "wards") in [(s.action.value, s.collection) for s in outcome.applied]


def test_missing_nullable_field_is_added_in_place(sql_store):
    with sql_store.engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE categories (id INTEGER PRIMARY KEY AUTOINCREMENT, key VARCHAR(100) NOT NULL UNIQUE, "
                "name VARCHAR(255) NOT NULL, created_at DATETIME, updated_at DATETIME)"
            )
        )
        conn.execute(text("INSERT INTO categories (key, name) VALUES ('tax', 'Thuế')"))

    report = SchemaInspector(sql_store, SHAPES).classify("categories")
    assert report.alterable
    assert report.missing_fields == ("color",)

    migrator = Migrator(sql_store, SHAPES, DependencyGraph.from_metadata(Base.metadata))
    assert migrator.apply(migrator.plan(report)).ok
    assert sql_store.find_by("categories", "key", "tax")["color"] is None


def test_missing_required_field_forces_rebuild(json_store):
    json_store.data_dir.mkdir(parents=True)
    (json_store.data_dir / "categories.json").write_text(json.dumps([{"id": 1, "key": "tax"}]), encoding="utf-8")
    report = SchemaInspector(json_store, SHAPES).classify("categories")
    assert report.state is ShapeState.LEGACY
    assert report.rebuild


class _DropRefusingStore(JsonStore):
    def drop_collection(self, name: str) -> None:
        if name == "provinces":
            raise MigrationError(detail="permission denied to drop provinces")
        super().drop_collection(name)


def test_failed_step_is_recorded_and_children_skipped(tmp_path):
    store = _DropRefusingStore(tmp_path, Base.metadata)
    graph = DependencyGraph({"provinces": [], "wards": ["provinces"]})
    migrator = Migrator(store, SHAPES, graph)
    report = ShapeReport("provinces", ShapeState.LEGACY, "integer", "text", rebuild=True)

    outcome = migrator.apply(migrator.plan(report))

    assert not outcome.ok
    assert set(outcome.failed) == {"provinces", "wards"}
    assert [(s.action.value, s.collection) for s in outcome.applied] == [("drop", "wards")]
