"""Start-up sequence: connect, inspect, migrate, create, seed.

Runs once per process before traffic is accepted. Every step after the
connection check works collection by collection, so one broken collection is
marked degraded and the rest of the service still comes up.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Mapping, Optional

from sqlalchemy import MetaData
from sqlalchemy.exc import SQLAlchemyError

from legal_calendar.core.config import Settings
from legal_calendar.db import Base
from legal_calendar.db.graph import DependencyGraph
from legal_calendar.db.inspector import SchemaInspector, ShapeReport, ShapeState, shapes_from_metadata
from legal_calendar.db.migrator import MigrationOutcome, Migrator
from legal_calendar.domain.errors import PersistenceError, StoreUnavailable
from legal_calendar.domain.seeds import SeedSet, default_catalogue
from legal_calendar.repositories.base import StoreBackend
from legal_calendar.repositories.content_repository import ContentRepository
from legal_calendar.services.seed_service import Seeder, SeedResult

logger = logging.getLogger(__name__)

_STORE_ERRORS = (PersistenceError, SQLAlchemyError, OSError)


class BootState(str, Enum):
    STARTING = "starting"
    CONNECTING_STORE = "connecting_store"
    INSPECTING_SCHEMA = "inspecting_schema"
    MIGRATING = "migrating"
    CREATING_COLLECTIONS = "creating_collections"
    SEEDING = "seeding"
    READY = "ready"
    DEGRADED_READY = "degraded_ready"


@dataclass(frozen=True)
class Transition:
    state: BootState
    at: datetime
    note: str = ""


@dataclass
class BootReport:
    reports: dict[str, ShapeReport] = field(default_factory=dict)
    migration: Optional[MigrationOutcome] = None
    created: list[str] = field(default_factory=list)
    seeded: dict[str, SeedResult] = field(default_factory=dict)


class BootSequencer:
    def __init__(
        self,
        store: StoreBackend,
        repository: ContentRepository,
        catalogue: Mapping[str, SeedSet],
        metadata: MetaData,
        *,
        attempts: int = 3,
        retry_seconds: float = 1.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.catalogue = catalogue
        self.attempts = max(1, attempts)
        self.retry_seconds = retry_seconds
        self._sleep = sleep

        shapes = shapes_from_metadata(metadata)
        self.graph = DependencyGraph.from_metadata(metadata)
        self.inspector = SchemaInspector(store, shapes)
        self.migrator = Migrator(store, shapes, self.graph)
        self.seeder = Seeder(repository)

        self.state = BootState.STARTING
        self.history: list[Transition] = [Transition(BootState.STARTING, datetime.now(timezone.utc))]
        self.degraded: dict[str, str] = {}
        self.store_connected = False
        self.report = BootReport()
        self._run_lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self.state is BootState.READY

    @property
    def finished(self) -> bool:
        return self.state in (BootState.READY, BootState.DEGRADED_READY)

    def is_degraded(self, collection: str) -> bool:
        return collection in self.degraded

    def _transition(self, state: BootState, note: str = "") -> None:
        self.state = state
        self.history.append(Transition(state, datetime.now(timezone.utc), note))
        if state is BootState.DEGRADED_READY:
            logger.error("Boot state -> %s %s", state.value, note)
        else:
            logger.info("Boot state -> %s %s", state.value, note)

    def _mark_degraded(self, collection: str, reason: str) -> None:
        self.degraded[collection] = reason
        logger.error("Collection %s degraded: %s", collection, reason)

    # -------------------------- phases --------------------------
    def run(self) -> BootState:
        with self._run_lock:
            if self.finished:
                return self.state
            if not self._connect():
                self._transition(BootState.DEGRADED_READY, "store unreachable")
                return self.state
            self._inspect()
            self._migrate()
            self._create()
            self._seed()
            note = f"degraded: {', '.join(sorted(self.degraded))}" if self.degraded else ""
            self._transition(BootState.READY, note)
            return self.state

    def _connect(self) -> bool:
        self._transition(BootState.CONNECTING_STORE, self.store.kind)
        for attempt in range(1, self.attempts + 1):
            try:
                self.store.ping()
            except StoreUnavailable as exc:
                logger.warning("Store not reachable (attempt %s/%s): %s", attempt, self.attempts, exc.detail)
                if attempt < self.attempts:
                    self._sleep(self.retry_seconds)
                continue
            self.store_connected = True
            return True
        return False

    def _inspect(self) -> None:
        self._transition(BootState.INSPECTING_SCHEMA)
        for name in self.graph.creation_order():
            try:
                self.report.reports[name] = self.inspector.classify(name)
            except _STORE_ERRORS as exc:
                self._mark_degraded(name, getattr(exc, "detail", str(exc)))

    def _migrate(self) -> None:
        legacy = [r for r in self.report.reports.values() if r.state is ShapeState.LEGACY]
        if not legacy:
            return
        self._transition(BootState.MIGRATING, ", ".join(r.collection for r in legacy))
        plan = self.migrator.plan_all(legacy)
        if plan.dropped:
            logger.warning("Rebuilding %s; stored rows are discarded", ", ".join(plan.dropped))
        outcome = self.migrator.apply(plan)
        self.report.migration = outcome
        for name, exc in outcome.failed.items():
            self._mark_degraded(name, exc.detail)

    def _create(self) -> None:
        self._transition(BootState.CREATING_COLLECTIONS)
        for name in self.graph.creation_order():
            if self.is_degraded(name):
                continue
            try:
                if self.store.create_collection(name):
                    self.report.created.append(name)
            except _STORE_ERRORS as exc:
                self._mark_degraded(name, getattr(exc, "detail", str(exc)))

    def _seed(self) -> None:
        self._transition(BootState.SEEDING)
        for name in self.graph.creation_order():
            seed_set = self.catalogue.get(name)
            if seed_set is None or self.is_degraded(name):
                continue
            try:
                self.report.seeded[name] = self.seeder.ensure_seeded(name, seed_set)
            except _STORE_ERRORS as exc:
                self._mark_degraded(name, getattr(exc, "detail", str(exc)))

    @classmethod
    def from_settings(cls, settings: Settings, store: StoreBackend, repository: ContentRepository) -> "BootSequencer":
        return cls(
            store,
            repository,
            default_catalogue(settings),
            Base.metadata,
            attempts=settings.db_connect_attempts,
            retry_seconds=settings.db_connect_retry_seconds,
        )
