"""Schema shapes and the inspector that compares them with what is stored.

The expected shape of a collection is derived from its SQLAlchemy table every
time the process starts. Each store reports the shape it actually holds as an
:class:`ObservedShape`; the inspector compares a small fingerprint (primary
key type family plus the set of field names) and classifies the collection.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy import Boolean, DateTime, Integer, MetaData, String, Table, Text

if TYPE_CHECKING:
    from legal_calendar.repositories.base import StoreBackend

logger = logging.getLogger(__name__)


def type_family(sql_type: Any) -> str:
    """Collapse dialect-specific column types into a comparable family."""
    if isinstance(sql_type, Boolean):
        return "boolean"
    if isinstance(sql_type, Integer):
        return "integer"
    if isinstance(sql_type, DateTime):
        return "datetime"
    if isinstance(sql_type, (String, Text)):
        return "text"
    return type(sql_type).__name__.lower()


@dataclass(frozen=True)
class FieldShape:
    name: str
    family: str
    nullable: bool
    default: Any = None
    has_default: bool = False
    max_length: int | None = None
    primary_key: bool = False

    @property
    def required(self) -> bool:
        """Callers must supply a value: not nullable and nothing fills it in."""
        return not (self.nullable or self.has_default or self.primary_key)


@dataclass(frozen=True)
class SchemaShape:
    name: str
    pk_field: str
    pk_family: str
    fields: tuple[FieldShape, ...]

    def field(self, name: str) -> FieldShape | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)


@dataclass(frozen=True)
class ObservedShape:
    """What a store actually holds for one collection.

    ``pk_family`` is None when the store cannot tell (an empty JSON file);
    a table without a primary key reports ``"none"``.
    """

    name: str
    pk_family: str | None
    field_names: frozenset[str]


class ShapeState(str, Enum):
    ABSENT = "absent"
    LEGACY = "legacy"
    CURRENT = "current"


@dataclass(frozen=True)
class ShapeReport:
    collection: str
    state: ShapeState
    expected_pk: str
    observed_pk: str | None = None
    missing_fields: tuple[str, ...] = ()
    rebuild: bool = False

    @property
    def alterable(self) -> bool:
        return self.state is ShapeState.LEGACY and not self.rebuild


def shape_from_table(table: Table) -> SchemaShape:
    fields: list[FieldShape] = []
    pk_field = "id"
    pk_family = "integer"
    for column in table.columns:
        has_default = column.server_default is not None
        default = None
        if column.default is not None and getattr(column.default, "is_scalar", False):
            has_default = True
            default = column.default.arg
        max_length = getattr(column.type, "length", None) if isinstance(column.type, String) else None
        fields.append(
            FieldShape(
                name=column.name,
                family=type_family(column.type),
                nullable=bool(column.nullable),
                default=default,
                has_default=has_default,
                max_length=max_length,
                primary_key=column.primary_key,
            )
        )
        if column.primary_key:
            pk_field = column.name
            pk_family = type_family(column.type)
    return SchemaShape(name=table.name, pk_field=pk_field, pk_family=pk_family, fields=tuple(fields))


def shapes_from_metadata(metadata: MetaData) -> dict[str, SchemaShape]:
    return {name: shape_from_table(table) for name, table in metadata.tables.items()}


@dataclass
class SchemaInspector:
    """Classify stored collections against the shapes the code expects."""

    store: "StoreBackend"
    shapes: Mapping[str, SchemaShape] = field(default_factory=dict)

    def classify(self, collection: str) -> ShapeReport:
        expected = self.shapes[collection]
        observed = self.store.observe(collection)
        if observed is None:
            return ShapeReport(collection, ShapeState.ABSENT, expected.pk_family)

        missing = tuple(f.name for f in expected.fields if f.name not in observed.field_names)
        pk_mismatch = observed.pk_family is not None and observed.pk_family != expected.pk_family
        if not missing and not pk_mismatch:
            return ShapeReport(collection, ShapeState.CURRENT, expected.pk_family, observed.pk_family)

        rebuild = (
            pk_mismatch
            or expected.pk_field in missing
            or any(expected.field(name).required for name in missing)
        )
        report = ShapeReport(
            collection,
            ShapeState.LEGACY,
            expected.pk_family,
            observed.pk_family,
            missing_fields=missing,
            rebuild=rebuild,
        )
        logger.warning(
            "Collection %s has a legacy shape (pk %s, expected %s; missing %s; rebuild=%s)",
            collection,
            observed.pk_family,
            expected.pk_family,
            ", ".join(missing) or "-",
            rebuild,
        )
        return report
