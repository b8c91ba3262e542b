"""Turn shape reports into migration plans and apply them.

A legacy collection whose primary key still matches and whose missing fields
can be filled with defaults is altered in place. Anything else is rebuilt:
its dependents are dropped first (deepest first), then the collection itself,
and everything is recreated parents first. Rebuilding discards the stored
rows; ``scripts/import_legacy_json.py`` is the path that keeps them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping

from legal_calendar.domain.errors import MigrationError

from .graph import DependencyGraph
from .inspector import SchemaShape, ShapeReport, ShapeState

if TYPE_CHECKING:
    from legal_calendar.repositories.base import StoreBackend

logger = logging.getLogger(__name__)


class StepAction(str, Enum):
    ALTER = "alter"
    DROP = "drop"
    CREATE = "create"


@dataclass(frozen=True)
class MigrationStep:
    action: StepAction
    collection: str
    fields: tuple[str, ...] = ()

    def __str__(self) -> str:
        if self.fields:
            return f"{self.action.value} {self.collection} ({', '.join(self.fields)})"
        return f"{self.action.value} {self.collection}"


@dataclass(frozen=True)
class MigrationPlan:
    steps: tuple[MigrationStep, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.steps)

    def __iter__(self):
        return iter(self.steps)

    @property
    def dropped(self) -> list[str]:
        return [s.collection for s in self.steps if s.action is StepAction.DROP]


@dataclass
class MigrationOutcome:
    applied: list[MigrationStep] = field(default_factory=list)
    failed: dict[str, MigrationError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class Migrator:
    def __init__(self, store: "StoreBackend", shapes: Mapping[str, SchemaShape], graph: DependencyGraph):
        self.store = store
        self.shapes = shapes
        self.graph = graph

    def plan(self, report: ShapeReport) -> MigrationPlan:
        return self.plan_all([report])

    def plan_all(self, reports: Iterable[ShapeReport]) -> MigrationPlan:
        """Merge the reports into one plan: alters, then drops, then creates."""
        alters: list[MigrationStep] = []
        rebuild: set[str] = set()
        create: set[str] = set()
        for report in reports:
            if report.state is ShapeState.ABSENT:
                create.add(report.collection)
            elif report.alterable:
                alters.append(MigrationStep(StepAction.ALTER, report.collection, report.missing_fields))
            elif report.state is ShapeState.LEGACY:
                rebuild.add(report.collection)
                rebuild.update(self.graph.dependents(report.collection))

        # Dependents of a rebuilt collection are recreated, so altering them is moot.
        alters = [step for step in alters if step.collection not in rebuild]
        steps = list(alters)
        steps += [MigrationStep(StepAction.DROP, name) for name in self.graph.drop_order(rebuild)]
        steps += [MigrationStep(StepAction.CREATE, name) for name in self.graph.creation_order(rebuild | create)]
        return MigrationPlan(tuple(steps))

    def apply(self, plan: MigrationPlan) -> MigrationOutcome:
        """Run every step; a failed step marks its collection and the rest continue."""
        outcome = MigrationOutcome()
        for step in plan:
            blocked = self._blocked_by(step.collection, outcome.failed)
            if blocked:
                outcome.failed.setdefault(
                    step.collection,
                    MigrationError(detail=f"skipped {step}: {blocked} failed"),
                )
                logger.error("Skipping migration step %s because %s failed", step, blocked)
                continue
            try:
                self._run(step)
            except MigrationError as exc:
                outcome.failed[step.collection] = exc
                logger.error("Migration step %s failed: %s", step, exc.detail)
                continue
            except Exception as exc:
                outcome.failed[step.collection] = MigrationError(detail=str(exc))
                logger.exception("Migration step %s failed", step)
                continue
            outcome.applied.append(step)
            logger.info("Migration step applied: %s", step)
        return outcome

    def _blocked_by(self, collection: str, failed: Mapping[str, MigrationError]) -> str | None:
        if collection in failed:
            return collection
        for parent in self.graph.parents(collection):
            if parent in failed:
                return parent
        return None

    def _run(self, step: MigrationStep) -> None:
        if step.action is StepAction.ALTER:
            shape = self.shapes[step.collection]
            self.store.add_fields(step.collection, [shape.field(name) for name in step.fields])
        elif step.action is StepAction.DROP:
            self.store.drop_collection(step.collection)
        else:
            self.store.create_collection(step.collection)
