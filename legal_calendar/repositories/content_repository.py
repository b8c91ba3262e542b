"""Generic CRUD over every collection, independent of the storage backend.

Identity, validation, sanitization, natural-key uniqueness, cascades and
ordering live here; the backend only stores whole records.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import MetaData

from legal_calendar.core.sanitize import TextSanitizer
from legal_calendar.db.inspector import FieldShape, SchemaShape, shapes_from_metadata
from legal_calendar.db.session import Base
from legal_calendar.domain.collections import COLLECTIONS, SYSTEM_FIELDS, CollectionSpec
from legal_calendar.domain.errors import ConflictError, NotFoundError, ValidationError

from .base import StoreBackend

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_int(value: str) -> Optional[int]:
    """ASCII decimal with at most one leading minus; anything else is None."""
    text = value.strip()
    digits = text[1:] if text.startswith("-") else text
    if not digits or not (digits.isascii() and digits.isdecimal()):
        return None
    return int(text)


def _references(metadata: MetaData) -> dict[str, dict[str, str]]:
    refs: dict[str, dict[str, str]] = {}
    for name, table in metadata.tables.items():
        refs[name] = {fk.parent.name: fk.column.table.name for fk in table.foreign_keys}
    return refs


class ContentRepository:
    def __init__(
        self,
        store: StoreBackend,
        metadata: MetaData | None = None,
        collections: Mapping[str, CollectionSpec] | None = None,
    ):
        metadata = metadata if metadata is not None else Base.metadata
        self.store = store
        self.shapes: dict[str, SchemaShape] = shapes_from_metadata(metadata)
        self.collections = collections if collections is not None else COLLECTIONS
        self._refs = _references(metadata)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def lock(self, collection: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(collection, threading.Lock())

    def _spec(self, collection: str) -> tuple[CollectionSpec, SchemaShape]:
        spec = self.collections.get(collection)
        if spec is None or collection not in self.shapes:
            raise NotFoundError("Không tìm thấy danh mục", detail=f"unknown collection {collection!r}")
        return spec, self.shapes[collection]

    # -------------------------- reads --------------------------
    def list(self, collection: str, filters: Optional[Mapping[str, Any]] = None) -> list[dict]:
        spec, shape = self._spec(collection)
        records = self.store.select(collection, self._filters(spec, shape, filters), spec.joins)
        if spec.sort_key is not None:
            records.sort(key=spec.sort_key, reverse=spec.sort_desc)
        return records

    def get(self, collection: str, record_id: Any) -> dict:
        spec, shape = self._spec(collection)
        pk = self._record_id(shape, record_id)
        rows = self.store.select(collection, {shape.pk_field: pk}, spec.joins)
        if not rows:
            raise NotFoundError(detail=f"{collection}/{record_id} not found")
        return rows[0]

    def find_by(self, collection: str, field: str, value: Any) -> Optional[dict]:
        self._spec(collection)
        return self.store.find_by(collection, field, value)

    def count(self, collection: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        spec, shape = self._spec(collection)
        return self.store.count(collection, self._filters(spec, shape, filters))

    # -------------------------- writes --------------------------
    def create(self, collection: str, fields: Mapping[str, Any]) -> dict:
        spec, shape = self._spec(collection)
        values = self._clean(spec, shape, fields, partial=False)
        self._check_references(collection, values)
        with self.lock(collection):
            self._check_natural_key(spec, values)
            now = datetime.now(timezone.utc)
            values["created_at"] = now
            values["updated_at"] = now
            record = self.store.insert(collection, values)
        logger.debug("Created %s/%s", collection, record.get("id"))
        return self.get(collection, record["id"])

    def update(self, collection: str, record_id: Any, fields: Mapping[str, Any]) -> dict:
        spec, shape = self._spec(collection)
        pk = self._record_id(shape, record_id)
        changes = self._clean(spec, shape, fields, partial=True)
        self._check_references(collection, changes)
        with self.lock(collection):
            current = self.store.fetch(collection, pk)
            if current is None:
                raise NotFoundError(detail=f"{collection}/{record_id} not found")
            self._check_natural_key(spec, changes, exclude_id=pk)
            if spec.before_update is not None:
                changes = spec.before_update(current, changes)
            changes["updated_at"] = datetime.now(timezone.utc)
            if self.store.update(collection, pk, changes) is None:
                raise NotFoundError(detail=f"{collection}/{record_id} not found")
        return self.get(collection, pk)

    def delete(self, collection: str, record_id: Any) -> None:
        spec, shape = self._spec(collection)
        pk = self._record_id(shape, record_id)
        with self.lock(collection):
            if self.store.fetch(collection, pk) is None:
                raise NotFoundError(detail=f"{collection}/{record_id} not found")
            for child, field in spec.cascades:
                with self.lock(child):
                    removed = self.store.delete_where(child, field, pk)
                if removed:
                    logger.info("Deleted %s %s of %s/%s", removed, child, collection, pk)
            self.store.delete(collection, pk)

    # -------------------------- helpers --------------------------
    def _record_id(self, shape: SchemaShape, value: Any) -> Any:
        if shape.pk_family != "integer":
            return str(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            number = _parse_int(value)
            if number is not None:
                return number
        raise NotFoundError(detail=f"invalid id {value!r}")

    def _filters(self, spec: CollectionSpec, shape: SchemaShape, filters: Optional[Mapping[str, Any]]) -> dict:
        coerced: dict[str, Any] = {}
        for key, value in (filters or {}).items():
            if key not in spec.filterable:
                continue
            field = shape.field(key)
            try:
                coerced[key] = self._coerce(field, value)
            except ValidationError:
                raise ValidationError("Bộ lọc không hợp lệ", field=key) from None
        return coerced

    def _clean(self, spec: CollectionSpec, shape: SchemaShape, fields: Any, *, partial: bool) -> dict:
        if not isinstance(fields, Mapping):
            raise ValidationError(detail="payload must be an object")
        values: dict[str, Any] = {}
        for key, value in fields.items():
            if key in spec.readonly or key in spec.derived_fields:
                continue
            field = shape.field(key)
            if field is None:
                raise ValidationError(f"Trường không hợp lệ: {key}", field=key)
            values[key] = self._value(spec, field, value)

        for field in shape.fields:
            if field.name in SYSTEM_FIELDS or field.primary_key:
                continue
            if field.name not in values:
                if partial:
                    continue
                if field.required and field.name not in spec.readonly:
                    raise ValidationError(f"Thiếu trường bắt buộc: {field.name}", field=field.name)
                values[field.name] = field.default
            elif field.required and values[field.name] in (None, ""):
                raise ValidationError(f"Thiếu trường bắt buộc: {field.name}", field=field.name)
        return values

    def _value(self, spec: CollectionSpec, field: FieldShape, value: Any) -> Any:
        if value is None:
            if field.nullable or field.required:
                return None
            return field.default
        value = self._coerce(field, value)
        if field.family == "text":
            if field.name in spec.plain_text:
                value = TextSanitizer.plain(value)
            elif field.name in spec.rich_text:
                value = TextSanitizer.rich(value)
            else:
                value = value.strip()
            if field.max_length is not None and len(value) > field.max_length:
                raise ValidationError(
                    f"Trường {field.name} dài quá {field.max_length} ký tự", field=field.name
                )
        return value

    def _coerce(self, field: FieldShape, value: Any) -> Any:
        family = field.family
        if family == "text":
            if isinstance(value, str):
                return value
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return str(value)
        elif family == "integer":
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            if isinstance(value, str):
                number = _parse_int(value)
                if number is not None:
                    return number
        elif family == "boolean":
            if isinstance(value, bool):
                return value
            if isinstance(value, int) and value in (0, 1):
                return bool(value)
            if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
                return value.strip().lower() in _TRUE
        elif family == "datetime":
            if isinstance(value, datetime):
                return value
            if isinstance(value, str):
                try:
                    return datetime.fromisoformat(value.replace("Z", "+00:00"))
                except ValueError:
                    pass
        else:
            return value
        raise ValidationError(f"Kiểu dữ liệu không hợp lệ: {field.name}", field=field.name)

    def _check_references(self, collection: str, values: Mapping[str, Any]) -> None:
        for field, parent in self._refs.get(collection, {}).items():
            value = values.get(field)
            if value is not None and self.store.fetch(parent, value) is None:
                raise ValidationError(f"Tham chiếu không tồn tại: {field}", field=field)

    def _check_natural_key(self, spec: CollectionSpec, values: Mapping[str, Any], exclude_id: Any = None) -> None:
        key = spec.natural_key
        if not key or values.get(key) in (None, ""):
            return
        existing = self.store.find_by(spec.name, key, values[key])
        if existing is not None and existing.get("id") != exclude_id:
            raise ConflictError(detail=f"{spec.name}.{key}={values[key]!r} already exists")
