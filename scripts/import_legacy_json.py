#!/usr/bin/env python3
"""
Import a legacy JSON data directory into the current store.

The legacy files use string province ids (``"hcm"``), category keys as ids
and camelCase fields. Rows are rewritten under the current shapes and
inserted only when their natural key is not present yet, so the script can
be re-run safely.

Usage:
  python scripts/import_legacy_json.py --data-dir ./backend/data [--backend sql|json]
"""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Callable, Iterable

# Ensure the package is importable when run directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from legal_calendar.core.config import get_settings
from legal_calendar.core.logging import setup_logging
from legal_calendar.core.security import hash_password
from legal_calendar.db import Base
from legal_calendar.domain.seeds import Ref, SeedSet
from legal_calendar.repositories import build_store
from legal_calendar.repositories.content_repository import ContentRepository
from legal_calendar.services.boot_service import BootSequencer, BootState
from legal_calendar.services.seed_service import Seeder


def _province(value) -> Ref | None:
    if value in (None, ""):
        return None
    return Ref("provinces", "code", str(value).strip().lower())


def _category(value) -> Ref | None:
    if value in (None, ""):
        return None
    return Ref("categories", "key", str(value).strip())


def _admin(row: dict) -> dict | None:
    password = row.get("password") or ""
    if not password or password.startswith("$2"):
        # bcrypt hashes cannot be carried over; the account must be recreated.
        return None
    return {
        "username": row.get("username"),
        "password_hash": partial(hash_password, password),
        "full_name": row.get("fullName"),
        "email": row.get("email"),
        "role": row.get("role") or "admin",
    }


def _event(row: dict) -> dict:
    return {
        "title": row.get("title"),
        "description": row.get("description"),
        "deadline": row.get("deadline"),
        "day_of_month": row.get("dayOfMonth"),
        "month": row.get("month"),
        "frequency": row.get("frequency"),
        "legal_base": row.get("legalReference") or row.get("legalBase"),
        "penalty": row.get("penalty"),
        "instructions": row.get("instructions"),
        "applies_to": row.get("appliesTo"),
        "priority": row.get("priority") or "medium",
        "category_id": _category(row.get("category")),
        "province_id": _province(row.get("provinceId")),
        "is_active": row.get("isActive", True),
    }


def _agency(row: dict) -> dict:
    return {
        "name": row.get("name"),
        "category": row.get("category"),
        "province_id": _province(row.get("provinceId")),
        "address": row.get("address"),
        "phone": row.get("phone"),
        "hours": row.get("hours"),
        "website": row.get("website") or None,
        "is_active": row.get("isActive", True),
    }


def _news(row: dict) -> dict:
    return {
        "title": row.get("title"),
        "summary": row.get("summary"),
        "content": row.get("content"),
        "date": row.get("date"),
        "source": row.get("source"),
        "url": row.get("url"),
        "image_url": row.get("imageUrl"),
        "category": row.get("category"),
        "is_hot": row.get("isHot", False),
        "is_active": row.get("isActive", True),
    }


def _organization(row: dict) -> dict:
    return {
        "name": row.get("name"),
        "intro": row.get("intro"),
        "looking_for": row.get("lookingFor"),
        "phone": row.get("phone"),
        "email": row.get("email"),
        "address": row.get("location"),
        "verified": row.get("verified", False),
        "is_active": row.get("isActive", True),
    }


# file, collection, natural key, row mapper; parents before children
LEGACY_FILES: tuple[tuple[str, str, str, Callable[[dict], dict | None]], ...] = (
    ("event-categories.json", "categories", "key", lambda r: {"key": r.get("id"), "name": r.get("name"), "color": r.get("color")}),
    ("provinces.json", "provinces", "code", lambda r: {"code": str(r.get("id") or "").lower(), "name": r.get("name"), "region": r.get("region")}),
    ("agencies.json", "agencies", "name", _agency),
    ("events.json", "events", "title", _event),
    ("news.json", "news", "title", _news),
    ("businesses.json", "organizations", "name", _organization),
    ("admins.json", "admin_users", "username", _admin),
)


def _load_rows(path: Path) -> list[dict]:
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise SystemExit(f"{path} must hold a JSON array")
    return [row for row in data if isinstance(row, dict)]


def legacy_seed_sets(data_dir: Path) -> Iterable[SeedSet]:
    for filename, collection, key, mapper in LEGACY_FILES:
        path = data_dir / filename
        if not path.exists():
            print(f"skip {filename}: not found")
            continue
        records = []
        for row in _load_rows(path):
            mapped = mapper(row)
            if mapped is None:
                print(f"skip {collection} row {row.get('id')!r}: cannot be converted")
                continue
            records.append({k: v for k, v in mapped.items() if v is not None})
        yield SeedSet(collection, key, tuple(records))


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Import legacy JSON data into the current store")
    ap.add_argument("--data-dir", required=True, help="directory holding the legacy *.json files")
    ap.add_argument("--backend", choices=["sql", "json"], help="override STORAGE_BACKEND")
    args = ap.parse_args(argv)

    data_dir = Path(args.data_dir)
    if not data_dir.is_dir():
        raise SystemExit(f"Directory not found: {data_dir}")

    settings = get_settings()
    if args.backend:
        settings = replace(settings, storage_backend=args.backend)
    if settings.storage_backend == "json" and settings.data_dir.resolve() == data_dir.resolve():
        raise SystemExit("Legacy directory and DATA_DIR must differ")
    setup_logging(settings.log_level)

    store = build_store(settings)
    repository = ContentRepository(store, Base.metadata)
    boot = BootSequencer.from_settings(settings, store, repository)
    try:
        if boot.run() is not BootState.READY:
            raise SystemExit("Store is not reachable; nothing imported")
        seeder = Seeder(repository)
        failed = 0
        for seed_set in legacy_seed_sets(data_dir):
            if boot.is_degraded(seed_set.collection):
                print(f"skip {seed_set.collection}: collection is degraded")
                continue
            result = seeder.ensure_seeded(seed_set.collection, seed_set)
            failed += result.failed
            print(
                f"{seed_set.collection}: {result.inserted} imported, "
                f"{result.skipped} already present, {result.failed} failed"
            )
            for error in result.errors:
                print(f"  - {error}")
    finally:
        store.close()
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
