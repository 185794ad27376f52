"""Abstract store interface.

The audit cache depends on BaseStore, not on a concrete backend, so
backends are swappable without touching diffguard_core. Values are opaque
strings (serialized audit results); keys are content hashes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diffguard_store.models import CacheEntry


class BaseStore(ABC):
    """Pluggable key/value persistence for cached audit results.

    Writes for the same key always carry the same value, so concurrent
    writers (parallel CI jobs sharing a cache directory) need no locking.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value for key, or None.

        Unreadable or corrupted entries are reported as None, never raised.
        """

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Insert or overwrite the value for key."""

    @abstractmethod
    def entries(self) -> list[CacheEntry]:
        """Return every readable entry, oldest first."""

    @abstractmethod
    def clear(self) -> int:
        """Delete every entry and return how many were removed."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional; subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
