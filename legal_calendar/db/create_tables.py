"""Run the start-up sequence once without serving HTTP.

    python -m legal_calendar.db.create_tables [--backend sql|json]

Connects, inspects, migrates, creates missing collections and seeds, then
prints what happened. Exits non-zero when the store is unreachable or a
collection ends up degraded.
"""
from __future__ import annotations

import argparse
from dataclasses import replace

from legal_calendar.core.config import get_settings
from legal_calendar.core.logging import setup_logging
from legal_calendar.repositories import build_store
from legal_calendar.repositories.content_repository import ContentRepository
from legal_calendar.services.boot_service import BootSequencer, BootState

from .session import Base


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create, migrate and seed the Legal Calendar store")
    parser.add_argument("--backend", choices=["sql", "json"], help="override STORAGE_BACKEND")
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.backend:
        settings = replace(settings, storage_backend=args.backend)
    setup_logging(settings.log_level)

    store = build_store(settings)
    boot = BootSequencer.from_settings(settings, store, ContentRepository(store, Base.metadata))
    try:
        state = boot.run()
    finally:
        store.close()

    print(f"Boot finished in state {state.value} ({store.kind} store)")
    for name, report in boot.report.reports.items():
        print(f"  {name}: {report.state.value}")
    if boot.report.created:
        print(f"Created: {', '.join(boot.report.created)}")
    for name, result in boot.report.seeded.items():
        print(f"Seeded {name}: {result.inserted} inserted, {result.skipped} present, {result.failed} failed")
    for name, reason in boot.degraded.items():
        print(f"DEGRADED {name}: {reason}")

    if state is not BootState.READY or boot.degraded:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
