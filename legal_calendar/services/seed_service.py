"""Insert-if-absent seeding of reference rows."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from legal_calendar.domain.errors import PersistenceError
from legal_calendar.domain.seeds import Ref, SeedSet
from legal_calendar.repositories.content_repository import ContentRepository

logger = logging.getLogger(__name__)


@dataclass
class SeedResult:
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class Seeder:
    """Apply seed sets through the repository so rows get ids, defaults and validation."""

    def __init__(self, repository: ContentRepository):
        self.repository = repository

    def ensure_seeded(self, collection: str, seed_set: SeedSet) -> SeedResult:
        result = SeedResult()
        for entry in seed_set.records:
            key_value = entry.get(seed_set.natural_key)
            if key_value in (None, ""):
                result.failed += 1
                result.errors.append(f"missing {seed_set.natural_key}")
                logger.warning("Seed row for %s has no %s; skipped", collection, seed_set.natural_key)
                continue
            try:
                if self.repository.find_by(collection, seed_set.natural_key, key_value) is not None:
                    result.skipped += 1
                    continue
                self.repository.create(collection, self._resolve(entry))
            except PersistenceError as exc:
                result.failed += 1
                result.errors.append(f"{key_value}: {exc.detail}")
                logger.warning("Seed row %s/%s failed: %s", collection, key_value, exc.detail)
                continue
            result.inserted += 1

        logger.info(
            "Seeded %s: %s inserted, %s already present, %s failed",
            collection,
            result.inserted,
            result.skipped,
            result.failed,
        )
        return result

    def _resolve(self, entry: dict) -> dict:
        values: dict[str, Any] = {}
        for key, value in entry.items():
            if isinstance(value, Ref):
                parent = self.repository.find_by(value.collection, value.field, value.value)
                value = parent["id"] if parent else None
            elif callable(value):
                value = value()
            values[key] = value
        return values
