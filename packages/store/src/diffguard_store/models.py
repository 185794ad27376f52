"""Cache entry model.

Decoupled from diffguard_core so the store layer can be used independently
and diffguard_core has no knowledge of persistence concerns.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CacheEntry:
    """One cached value as persisted by a store backend."""

    key: str
    value: str
    created_at: str  # ISO-8601 UTC timestamp

    @property
    def size(self) -> int:
        return len(self.value.encode("utf-8"))

    def to_dict(self) -> dict:
        return {"key": self.key, "value": self.value, "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: dict) -> CacheEntry:
        return cls(key=data["key"], value=data["value"], created_at=data.get("created_at", ""))
