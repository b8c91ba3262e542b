"""Per-collection behaviour on top of the table declarations.

Field sets, types and defaults come from ``legal_calendar.db.models``. This
module adds what the tables cannot express: natural keys, which text fields
are sanitized and how, read-time joins, filterable fields, cascades, ordering
and update hooks.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from legal_calendar.domain.dates import newest_first
from legal_calendar.domain.errors import ValidationError

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})
SUPPORT_STATUSES = ("pending", "in-progress", "resolved", "closed")


@dataclass(frozen=True)
class Join:
    """Left join used to denormalize a parent's display field onto a record."""

    field: str
    collection: str
    alias: str
    display_field: str = "name"


@dataclass(frozen=True)
class CollectionSpec:
    name: str
    natural_key: Optional[str] = None
    plain_text: frozenset[str] = frozenset()
    rich_text: frozenset[str] = frozenset()
    joins: tuple[Join, ...] = ()
    filterable: frozenset[str] = frozenset()
    cascades: tuple[tuple[str, str], ...] = ()
    readonly: frozenset[str] = SYSTEM_FIELDS
    sort_key: Optional[Callable[[dict], Any]] = None
    sort_desc: bool = False
    admin_exposed: bool = True
    token_prefix: str = "item"
    before_update: Optional[Callable[[dict, dict], dict]] = field(default=None, compare=False)

    @property
    def derived_fields(self) -> frozenset[str]:
        return frozenset(j.alias for j in self.joins)


def _by_name(record: dict) -> str:
    return (record.get("name") or "").casefold()


def _support_request_update(current: dict, changes: dict) -> dict:
    status = changes.get("status")
    if status is None:
        return changes
    if status not in SUPPORT_STATUSES:
        raise ValidationError("Trạng thái không hợp lệ", field="status")
    if status == "resolved" and current.get("status") != "resolved":
        changes = {**changes, "resolved_at": datetime.now(timezone.utc)}
    return changes


_PROVINCE_JOIN = Join("province_id", "provinces", "province_name")

COLLECTIONS: dict[str, CollectionSpec] = {
    spec.name: spec
    for spec in (
        CollectionSpec(
            "settings",
            natural_key="key",
            plain_text=frozenset({"key"}),
            sort_key=lambda r: r.get("key") or "",
        ),
        CollectionSpec(
            "admin_users",
            natural_key="username",
            plain_text=frozenset({"username", "full_name"}),
            admin_exposed=False,
        ),
        CollectionSpec(
            "categories",
            natural_key="key",
            plain_text=frozenset({"key", "name"}),
            sort_key=_by_name,
        ),
        CollectionSpec(
            "org_types",
            natural_key="key",
            plain_text=frozenset({"key", "name"}),
            sort_key=_by_name,
        ),
        CollectionSpec(
            "provinces",
            natural_key="code",
            plain_text=frozenset({"code", "name"}),
            filterable=frozenset({"region"}),
            cascades=(("wards", "province_id"),),
            sort_key=_by_name,
        ),
        CollectionSpec(
            "wards",
            plain_text=frozenset({"code", "name"}),
            joins=(_PROVINCE_JOIN,),
            filterable=frozenset({"province_id"}),
            sort_key=_by_name,
        ),
        CollectionSpec(
            "agencies",
            natural_key="code",
            plain_text=frozenset({"code", "name", "address", "hours"}),
            joins=(_PROVINCE_JOIN,),
            filterable=frozenset({"province_id", "category", "is_active"}),
            sort_key=_by_name,
        ),
        CollectionSpec(
            "events",
            plain_text=frozenset({"title", "deadline", "applies_to", "legal_base"}),
            rich_text=frozenset({"description", "penalty", "instructions"}),
            joins=(
                Join("agency_id", "agencies", "agency_name"),
                _PROVINCE_JOIN,
                Join("category_id", "categories", "category_name"),
            ),
            filterable=frozenset({"agency_id", "province_id", "category_id", "frequency", "priority", "is_active"}),
            sort_key=newest_first("created_at"),
            sort_desc=True,
            token_prefix="evt",
        ),
        CollectionSpec(
            "news",
            plain_text=frozenset({"title", "summary", "source"}),
            rich_text=frozenset({"content"}),
            filterable=frozenset({"category", "is_hot", "is_active"}),
            sort_key=newest_first("date"),
            sort_desc=True,
            token_prefix="news",
        ),
        CollectionSpec(
            "lawyers",
            plain_text=frozenset({"full_name", "firm", "specialty", "address"}),
            rich_text=frozenset({"bio"}),
            joins=(_PROVINCE_JOIN,),
            filterable=frozenset({"province_id", "specialty", "is_active"}),
            sort_key=lambda r: (r.get("full_name") or "").casefold(),
        ),
        CollectionSpec(
            "organizations",
            plain_text=frozenset({"name", "looking_for", "address"}),
            rich_text=frozenset({"intro"}),
            joins=(
                Join("org_type_id", "org_types", "org_type_name"),
                _PROVINCE_JOIN,
                Join("ward_id", "wards", "ward_name"),
            ),
            filterable=frozenset({"org_type_id", "province_id", "ward_id", "verified", "is_active"}),
            sort_key=_by_name,
        ),
        CollectionSpec(
            "support_requests",
            plain_text=frozenset({"name", "subject", "message", "category"}),
            rich_text=frozenset({"admin_note", "admin_response"}),
            filterable=frozenset({"status", "category"}),
            readonly=SYSTEM_FIELDS | {"resolved_at"},
            sort_key=newest_first("created_at"),
            sort_desc=True,
            before_update=_support_request_update,
        ),
    )
}
