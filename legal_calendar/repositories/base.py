"""Primitive operations every storage backend provides.

The repository implements identity, validation, locking and cascades once on
top of these primitives; backends only know how to read and write whole
records of a named collection and how to report or change its shape.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from legal_calendar.db.inspector import FieldShape, ObservedShape
from legal_calendar.domain.collections import Join


class StoreBackend(ABC):
    kind: str = "abstract"

    # -------------------------- lifecycle --------------------------
    @abstractmethod
    def ping(self) -> None:
        """Raise StoreUnavailable when the store cannot be used."""

    def close(self) -> None:
        return None

    # -------------------------- shape --------------------------
    @abstractmethod
    def observe(self, name: str) -> Optional[ObservedShape]:
        """Return the stored shape of ``name``, or None when it does not exist."""

    @abstractmethod
    def create_collection(self, name: str) -> bool:
        """Create ``name`` with its current shape; False when it already existed."""

    @abstractmethod
    def drop_collection(self, name: str) -> None: ...

    @abstractmethod
    def add_fields(self, name: str, fields: Sequence[FieldShape]) -> None: ...

    def exists(self, name: str) -> bool:
        return self.observe(name) is not None

    # -------------------------- records --------------------------
    @abstractmethod
    def select(
        self,
        name: str,
        filters: Optional[Mapping[str, Any]] = None,
        joins: Sequence[Join] = (),
    ) -> list[dict]: ...

    @abstractmethod
    def fetch(self, name: str, record_id: Any) -> Optional[dict]: ...

    @abstractmethod
    def find_by(self, name: str, field: str, value: Any) -> Optional[dict]: ...

    @abstractmethod
    def insert(self, name: str, values: Mapping[str, Any]) -> dict:
        """Persist a new record; assigns the id when ``values`` has none."""

    @abstractmethod
    def update(self, name: str, record_id: Any, values: Mapping[str, Any]) -> Optional[dict]: ...

    @abstractmethod
    def delete(self, name: str, record_id: Any) -> bool: ...

    @abstractmethod
    def delete_where(self, name: str, field: str, value: Any) -> int: ...

    def count(self, name: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        return len(self.select(name, filters))
