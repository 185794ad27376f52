"""Content-addressed cache of per-file audit results.

The key hashes every input that can change the model's answer, so entries
never expire by time: a new prompt version, model, tool release or diff
simply produces a different key.

The backing store is injected by the caller; this module only needs
``get(key) -> str | None`` and ``put(key, value)`` and converts between
AuditResult and JSON. Store calls run in a worker thread so each read and
write is a suspension point.
"""

from __future__ import annotations

import asyncio
import hashlib
import importlib.metadata
import json
import logging

from diffguard_core.models import AuditResult, AuditStatus
from diffguard_core.normalizer import parse_audit_response

logger = logging.getLogger(__name__)

CACHE_VERSION = "1"


def get_tool_version() -> str:
    try:
        return importlib.metadata.version("diffguard")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0+local"


def build_cache_key(
    provider: str,
    model: str,
    prompt_version: str,
    tool_version: str,
    file_path: str,
    system_prompt: str,
    payload: str,
) -> str:
    parts = [CACHE_VERSION, provider, model, prompt_version, tool_version, file_path, system_prompt, payload]
    material = "::".join("" if part is None else str(part) for part in parts)
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class AuditCache:
    """Async facade over a key/value store holding serialized AuditResults."""

    def __init__(self, store, enabled: bool = True):
        self.store = store
        self.enabled = enabled and store is not None

    async def get(self, key: str) -> AuditResult | None:
        """Return the cached result, or None on a miss.

        Unreadable entries and entries that normalize to ERROR are misses.
        """
        if not self.enabled:
            return None
        try:
            raw = await asyncio.to_thread(self.store.get, key)
        except Exception as e:
            logger.warning("Cache read failed for %s: %s", key[:12], e)
            return None
        if raw is None:
            return None
        result = parse_audit_response(raw)
        if result.status == AuditStatus.ERROR:
            logger.debug("Ignoring unusable cache entry %s", key[:12])
            return None
        return result

    async def put(self, key: str, result: AuditResult) -> None:
        """Persist a non-ERROR result. Store failures are logged, never raised."""
        if not self.enabled or result.status == AuditStatus.ERROR:
            return
        try:
            await asyncio.to_thread(self.store.put, key, json.dumps(result.to_dict()))
        except Exception as e:
            logger.warning("Cache write failed for %s: %s", key[:12], e)
