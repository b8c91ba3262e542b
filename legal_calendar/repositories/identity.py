"""Identity allocation for stores without a database sequence."""
from __future__ import annotations

import secrets
import string
import threading
import time
from typing import Iterable

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


class IdentityAllocator:
    """Per-collection integer ids that only ever grow.

    The high-water mark survives deletes of the current maximum, so an id is
    never handed out twice during the lifetime of the process.
    """

    def __init__(self) -> None:
        self._high: dict[str, int] = {}
        self._lock = threading.Lock()

    def next_id(self, collection: str, existing_ids: Iterable[object]) -> int:
        numeric = [i for i in existing_ids if isinstance(i, int) and not isinstance(i, bool)]
        observed = max(numeric, default=0)
        with self._lock:
            issued = max(observed, self._high.get(collection, 0)) + 1
            self._high[collection] = issued
            return issued

    def forget(self, collection: str) -> None:
        """Drop the high-water mark; used when a collection is rebuilt."""
        with self._lock:
            self._high.pop(collection, None)

    @staticmethod
    def token(prefix: str) -> str:
        suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(9))
        return f"{prefix}_{int(time.time() * 1000)}_{suffix}"
