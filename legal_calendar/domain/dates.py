"""Domain helpers for the free-form dates admins type into news items."""
from __future__ import annotations

from datetime import datetime

_EPOCH = datetime(1970, 1, 1)


def parse_display_date(value: str | None) -> datetime:
    """Parse ``dd/mm/yyyy`` or ISO dates; anything else sorts as the epoch."""
    text = (value or "").strip()
    if not text:
        return _EPOCH
    parts = text.split("/")
    if len(parts) == 3:
        try:
            day, month, year = (int(p) for p in parts)
            return datetime(year, month, day)
        except ValueError:
            return _EPOCH
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed.replace(tzinfo=None)


def newest_first(field: str):
    """Sort key factory: newest ``field`` first when used with reverse=True."""
    def _key(record: dict) -> datetime:
        return parse_display_date(record.get(field))
    return _key
