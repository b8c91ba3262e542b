"""
Content use cases shared by the public and admin routers.

Every call returns an OperationResult; storage exceptions never escape to the
request loop.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError

from legal_calendar.domain.collections import COLLECTIONS, SUPPORT_STATUSES
from legal_calendar.domain.errors import PersistenceError, StoreUnavailable
from legal_calendar.repositories.content_repository import ContentRepository
from legal_calendar.services.boot_service import BootSequencer

logger = logging.getLogger(__name__)

OPERATIONS = ("list", "get", "create", "update", "delete")
GENERIC_ERROR = "Lỗi máy chủ"


@dataclass(frozen=True)
class OperationResult:
    ok: bool
    data: Any = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None) -> "OperationResult":
        return cls(True, data)

    @classmethod
    def failure(cls, error_kind: str, message: str) -> "OperationResult":
        return cls(False, None, error_kind, message)


@dataclass
class ContentService:
    repository: ContentRepository
    boot: BootSequencer

    def guard(self, collection: Optional[str] = None) -> Optional[OperationResult]:
        if not self.boot.ready:
            return OperationResult.failure("store_unavailable", StoreUnavailable.default_message)
        if collection is not None and self.boot.is_degraded(collection):
            return OperationResult.failure("store_unavailable", StoreUnavailable.default_message)
        return None

    def _run(self, label: str, call: Callable[[], Any]) -> OperationResult:
        try:
            return OperationResult.success(call())
        except PersistenceError as exc:
            if exc.error_kind in ("internal", "migration"):
                logger.error("%s failed: %s", label, exc.detail)
                return OperationResult.failure(exc.error_kind, GENERIC_ERROR)
            logger.debug("%s rejected (%s): %s", label, exc.error_kind, exc.detail)
            return OperationResult.failure(exc.error_kind, exc.message)
        except DBAPIError as exc:
            if exc.connection_invalidated or isinstance(exc, OperationalError):
                logger.error("%s lost the store: %s", label, exc)
                return OperationResult.failure("store_unavailable", StoreUnavailable.default_message)
            logger.exception("%s failed", label)
            return OperationResult.failure("internal", GENERIC_ERROR)
        except (SQLAlchemyError, OSError):
            logger.exception("%s failed", label)
            return OperationResult.failure("internal", GENERIC_ERROR)

    def execute(
        self,
        operation: str,
        collection: str,
        record_id: Any = None,
        payload: Optional[Mapping[str, Any]] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        if operation not in OPERATIONS:
            return OperationResult.failure("validation", "Thao tác không hợp lệ")
        if collection not in COLLECTIONS:
            return OperationResult.failure("not_found", "Không tìm thấy danh mục")
        blocked = self.guard(collection)
        if blocked:
            return blocked

        repo = self.repository
        label = f"{operation} {collection}" + (f"/{record_id}" if record_id is not None else "")
        if operation == "list":
            return self._run(label, lambda: repo.list(collection, filters))
        if operation == "get":
            return self._run(label, lambda: repo.get(collection, record_id))
        if operation == "create":
            return self._run(label, lambda: repo.create(collection, payload or {}))
        if operation == "update":
            return self._run(label, lambda: repo.update(collection, record_id, payload or {}))

        def _delete() -> dict:
            repo.delete(collection, record_id)
            return {"deleted": True}

        return self._run(label, _delete)

    # -------------------------- settings --------------------------
    def settings_map(self) -> OperationResult:
        blocked = self.guard("settings")
        if blocked:
            return blocked
        return self._run(
            "settings map",
            lambda: {row["key"]: row.get("value") for row in self.repository.list("settings")},
        )

    def update_settings(self, values: Any) -> OperationResult:
        blocked = self.guard("settings")
        if blocked:
            return blocked
        if not isinstance(values, Mapping) or not values:
            return OperationResult.failure("validation", "Dữ liệu không hợp lệ")

        def _upsert() -> dict:
            repo = self.repository
            for key, value in values.items():
                value = None if value is None else str(value)
                current = repo.find_by("settings", "key", key)
                if current is None:
                    repo.create("settings", {"key": key, "value": value})
                else:
                    repo.update("settings", current["id"], {"value": value})
            return {row["key"]: row.get("value") for row in repo.list("settings")}

        return self._run("update settings", _upsert)

    # -------------------------- statistics --------------------------
    def stats(self) -> OperationResult:
        blocked = self.guard()
        if blocked:
            return blocked

        def _stats() -> dict:
            counts = {}
            for name, spec in COLLECTIONS.items():
                if not spec.admin_exposed or name == "settings":
                    continue
                counts[name] = None if self.boot.is_degraded(name) else self.repository.count(name)
            active = None
            if not self.boot.is_degraded("events"):
                active = self.repository.count("events", {"is_active": True})
            pending = None
            if not self.boot.is_degraded("support_requests"):
                pending = self.repository.count("support_requests", {"status": "pending"})
            return {"counts": counts, "active_events": active, "pending_support_requests": pending}

        return self._run("stats", _stats)

    def support_stats(self) -> OperationResult:
        blocked = self.guard("support_requests")
        if blocked:
            return blocked

        def _support_stats() -> dict:
            rows = self.repository.list("support_requests")
            by_status = Counter(row.get("status") for row in rows)
            by_category = Counter(row.get("category") for row in rows)
            return {
                "total": len(rows),
                "by_status": {status: by_status.get(status, 0) for status in SUPPORT_STATUSES},
                "by_category": dict(by_category),
            }

        return self._run("support stats", _support_stats)
