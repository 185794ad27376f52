"""DirectoryStore: one JSON file per cache entry.

The default backend. A plain directory is easy to persist between CI runs
(``actions/cache`` on ``.diffguard-cache/``) and to inspect by hand.

Writes go to a temporary file in the same directory and are moved into
place with os.replace, so a reader never sees a half-written entry.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from diffguard_store.base import BaseStore
from diffguard_store.models import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = ".diffguard-cache"

_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class DirectoryStore(BaseStore):
    def __init__(self, cache_dir: str | Path = DEFAULT_CACHE_DIR):
        self.cache_dir = Path(cache_dir)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.cache_dir / f"{key}.json"

    def _read(self, path: Path) -> CacheEntry | None:
        try:
            return CacheEntry.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug("Unreadable cache entry %s: %s", path.name, e)
            return None

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.is_file():
            return None
        entry = self._read(path)
        return entry.value if entry is not None else None

    def put(self, key: str, value: str) -> None:
        path = self._path(key)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        entry = CacheEntry(key=key, value=value, created_at=datetime.now(timezone.utc).isoformat())
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=self.cache_dir, suffix=".tmp", delete=False
        ) as tmp:
            json.dump(entry.to_dict(), tmp)
            tmp_path = tmp.name
        os.replace(tmp_path, path)

    def entries(self) -> list[CacheEntry]:
        if not self.cache_dir.is_dir():
            return []
        found = [self._read(p) for p in self.cache_dir.glob("*.json")]
        return sorted((e for e in found if e is not None), key=lambda e: e.created_at)

    def clear(self) -> int:
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for path in [*self.cache_dir.glob("*.json"), *self.cache_dir.glob("*.tmp")]:
            path.unlink(missing_ok=True)
            if path.suffix == ".json":
                removed += 1
        return removed
