"""
JSON file persistence: one ``<collection>.json`` array per collection.

Every mutation rewrites the whole file through a temp file and ``os.replace``
so readers never see a half-written array.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import MetaData

from legal_calendar.db.inspector import FieldShape, ObservedShape, shapes_from_metadata
from legal_calendar.domain.collections import COLLECTIONS, Join
from legal_calendar.domain.errors import MigrationError, StoreUnavailable

from .base import StoreBackend
from .identity import IdentityAllocator

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _pk_family(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, str):
        return "text"
    return "none"


class JsonStore(StoreBackend):
    kind = "json"

    def __init__(self, data_dir: Path, metadata: MetaData, allocator: IdentityAllocator | None = None):
        self.data_dir = Path(data_dir)
        self.shapes = shapes_from_metadata(metadata)
        self.allocator = allocator or IdentityAllocator()

    # -------------------------- files --------------------------
    def _path(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def _read(self, name: str) -> list[dict]:
        path = self._path(name)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise StoreUnavailable(detail=f"collection file {path} does not exist") from None
        except json.JSONDecodeError as exc:
            raise MigrationError(detail=f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise MigrationError(detail=f"{path} must hold a JSON array of objects")
        return data

    def _write(self, name: str, records: list[dict]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2, default=_encode)
            os.replace(tmp, self._path(name))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    # -------------------------- lifecycle --------------------------
    def ping(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(detail=f"cannot create {self.data_dir}: {exc}") from exc
        if not os.access(self.data_dir, os.W_OK):
            raise StoreUnavailable(detail=f"{self.data_dir} is not writable")

    # -------------------------- shape --------------------------
    def observe(self, name: str) -> Optional[ObservedShape]:
        if not self._path(name).exists():
            return None
        records = self._read(name)
        if not records:
            # Nothing to compare against: an empty array fits any shape.
            return ObservedShape(name, None, frozenset(self.shapes[name].field_names))
        keys: set[str] = set()
        for record in records:
            keys.update(record)
        return ObservedShape(name, _pk_family(records[0].get("id")), frozenset(keys))

    def create_collection(self, name: str) -> bool:
        if self._path(name).exists():
            return False
        self._write(name, [])
        logger.info("Created collection file %s", self._path(name))
        return True

    def drop_collection(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)
        self.allocator.forget(name)
        logger.info("Dropped collection file %s", self._path(name))

    def add_fields(self, name: str, fields: Sequence[FieldShape]) -> None:
        records = self._read(name)
        for record in records:
            for field in fields:
                record.setdefault(field.name, field.default)
        self._write(name, records)

    # -------------------------- records --------------------------
    def _display_map(self, join: Join) -> dict[Any, Any]:
        if not self._path(join.collection).exists():
            return {}
        try:
            parents = self._read(join.collection)
        except MigrationError as exc:
            # An unreadable parent leaves the display field null.
            logger.warning("Join %s -> %s skipped: %s", join.alias, join.collection, exc.detail)
            return {}
        return {p.get("id"): p.get(join.display_field) for p in parents}

    def select(
        self,
        name: str,
        filters: Optional[Mapping[str, Any]] = None,
        joins: Sequence[Join] = (),
    ) -> list[dict]:
        filters = filters or {}
        records = [
            dict(r) for r in self._read(name)
            if all(r.get(key) == value for key, value in filters.items())
        ]
        for join in joins:
            names = self._display_map(join)
            for record in records:
                record[join.alias] = names.get(record.get(join.field))
        return records

    def fetch(self, name: str, record_id: Any) -> Optional[dict]:
        return self.find_by(name, "id", record_id)

    def find_by(self, name: str, field: str, value: Any) -> Optional[dict]:
        for record in self._read(name):
            if record.get(field) == value:
                return dict(record)
        return None

    def insert(self, name: str, values: Mapping[str, Any]) -> dict:
        records = self._read(name)
        record = {key: _encode(value) for key, value in values.items()}
        if record.get("id") is None:
            if self.shapes[name].pk_family == "text":
                spec = COLLECTIONS.get(name)
                record["id"] = self.allocator.token(spec.token_prefix if spec else name)
            else:
                record["id"] = self.allocator.next_id(name, (r.get("id") for r in records))
        records.append(record)
        self._write(name, records)
        return dict(record)

    def update(self, name: str, record_id: Any, values: Mapping[str, Any]) -> Optional[dict]:
        records = self._read(name)
        for record in records:
            if record.get("id") == record_id:
                record.update({key: _encode(value) for key, value in values.items() if key != "id"})
                self._write(name, records)
                return dict(record)
        return None

    def delete(self, name: str, record_id: Any) -> bool:
        return self.delete_where(name, "id", record_id) > 0

    def delete_where(self, name: str, field: str, value: Any) -> int:
        records = self._read(name)
        kept = [r for r in records if r.get(field) != value]
        removed = len(records) - len(kept)
        if removed:
            self._write(name, kept)
        return removed
