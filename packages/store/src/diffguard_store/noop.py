"""No-op store, used when caching is disabled (``store: none``).

Callers can always call get/put/close on it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from diffguard_store.base import BaseStore

if TYPE_CHECKING:
    from diffguard_store.models import CacheEntry


class NoOpStore(BaseStore):
    """Discards every write; every read is a miss."""

    def get(self, key: str) -> str | None:
        return None

    def put(self, key: str, value: str) -> None:
        pass  # intentional no-op

    def entries(self) -> list[CacheEntry]:
        return []

    def clear(self) -> int:
        return 0
