"""Tests for the content-addressed audit cache."""

import json

import pytest

from diffguard_core.cache import AuditCache, build_cache_key
from diffguard_core.models import AuditIssue, AuditResult, AuditStatus, Severity

KEY_PARTS = dict(
    provider="anthropic",
    model="claude",
    prompt_version="v1",
    tool_version="1.0.0",
    file_path="src/app.py",
    system_prompt="system",
    payload="+x = 1",
)


class _DictStore:
    def __init__(self, data=None):
        self.data = dict(data or {})

    def get(self, key):
        return self.data.get(key)

    def put(self, key, value):
        self.data[key] = value


class _BrokenStore:
    def get(self, key):
        raise OSError("disk gone")

    def put(self, key, value):
        raise OSError("read-only file system")


class TestBuildCacheKey:
    def test_stable_for_same_inputs(self):
        assert build_cache_key(**KEY_PARTS) == build_cache_key(**KEY_PARTS)

    @pytest.mark.parametrize("field", list(KEY_PARTS))
    def test_every_input_changes_the_key(self, field):
        changed = {**KEY_PARTS, field: KEY_PARTS[field] + "-changed"}
        assert build_cache_key(**changed) != build_cache_key(**KEY_PARTS)

    def test_key_is_hex_sha256(self):
        key = build_cache_key(**KEY_PARTS)
        assert len(key) == 64
        int(key, 16)

    def test_non_text_parts_are_stringified(self):
        assert build_cache_key(**{**KEY_PARTS, "prompt_version": 2}) == build_cache_key(
            **{**KEY_PARTS, "prompt_version": "2"}
        )


class TestAuditCache:
    @pytest.mark.asyncio
    async def test_put_then_get_roundtrip(self):
        cache = AuditCache(_DictStore())
        result = AuditResult(
            status=AuditStatus.FAIL,
            issues=(AuditIssue(line=4, severity=Severity.CRITICAL, message="eval on input", suggestion="Remove it"),),
        )
        await cache.put("k", result)
        assert await cache.get("k") == result

    @pytest.mark.asyncio
    async def test_error_results_never_written(self):
        store = _DictStore()
        await AuditCache(store).put("k", AuditResult.error("boom"))
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_corrupted_entry_is_a_miss(self):
        cache = AuditCache(_DictStore({"bad": "{not json", "shape": json.dumps({"status": "MAYBE"})}))
        assert await cache.get("bad") is None
        assert await cache.get("shape") is None

    @pytest.mark.asyncio
    async def test_disabled_cache_skips_store(self):
        store = _DictStore({"k": json.dumps({"status": "PASS", "issues": []})})
        cache = AuditCache(store, enabled=False)
        assert await cache.get("k") is None
        await cache.put("new", AuditResult(status=AuditStatus.PASS))
        assert "new" not in store.data

    @pytest.mark.asyncio
    async def test_no_store_means_disabled(self):
        assert AuditCache(None).enabled is False

    @pytest.mark.asyncio
    async def test_store_failures_are_logged_not_raised(self, caplog):
        cache = AuditCache(_BrokenStore())
        assert await cache.get("k") is None
        await cache.put("k", AuditResult(status=AuditStatus.PASS))
        assert "Cache read failed" in caplog.text
        assert "Cache write failed" in caplog.text
