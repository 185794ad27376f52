"""Audit orchestration: cache, retry, fallback and bounded concurrency.

Each file moves through a small state machine:

    PENDING ──cache hit──────────────────────────────────────────▶ DONE
       │
       └─cache miss─▶ CALLING ──success──────────────────────────▶ DONE
                        │  ▲
             retryable  ▼  │ backoff
                        RETRY ──attempts exhausted─▶ FALLBACK ──▶ (same loop per provider)
                        │                                  │
                 terminal error                    chain exhausted
                        ▼                                  ▼
                  DONE (ERROR result)              DONE (ERROR result)

Terminal errors (auth, validation) end the file immediately; the fallback
chain is only spent on transient failures.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import StrEnum

from diffguard_core.cache import AuditCache, build_cache_key, get_tool_version
from diffguard_core.errors import is_retryable_error
from diffguard_core.models import AuditResult, AuditStatus, FileAuditResult, SanitizedFile
from diffguard_core.normalizer import parse_audit_response
from diffguard_core.prompts import PROMPT_VERSION, build_user_prompt
from diffguard_core.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error auditing file"


class AuditState(StrEnum):
    PENDING = "PENDING"
    CALLING = "CALLING"
    RETRY = "RETRY"
    FALLBACK = "FALLBACK"
    DONE = "DONE"


@dataclass(frozen=True)
class AuditRun:
    results: tuple[FileAuditResult, ...]
    errors: tuple[str, ...]
    duration_ms: int


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class AuditOrchestrator:
    """Audit sanitized files against a primary provider and an ordered fallback chain.

    Files run in batches of ``max_concurrency``; a batch starts only after
    every member of the previous one has settled. One file's failure never
    affects its siblings.
    """

    def __init__(
        self,
        provider,
        system_prompt: str,
        fallbacks=(),
        cache: AuditCache | None = None,
        max_concurrency: int = 5,
        retry_policy: RetryPolicy | None = None,
        prompt_version: str | None = None,
        tool_version: str | None = None,
        sleep=None,
        on_progress=None,
    ):
        self.provider = provider
        self.fallbacks = list(fallbacks)
        self.system_prompt = system_prompt
        self.cache = cache
        self.max_concurrency = max(1, max_concurrency)
        self.retry_policy = retry_policy or RetryPolicy()
        self.prompt_version = PROMPT_VERSION if prompt_version in (None, "") else str(prompt_version)
        self.tool_version = tool_version or get_tool_version()
        self._sleep = sleep or asyncio.sleep
        self._on_progress = on_progress

    def cache_key(self, provider, file: SanitizedFile) -> str:
        return build_cache_key(
            provider=provider.name,
            model=provider.model,
            prompt_version=self.prompt_version,
            tool_version=self.tool_version,
            file_path=file.path,
            system_prompt=self.system_prompt,
            payload=file.content,
        )

    async def audit_files(self, files) -> AuditRun:
        files = list(files)
        total = len(files)
        results: list[FileAuditResult] = []
        errors: list[str] = []
        start = time.monotonic()

        for offset in range(0, total, self.max_concurrency):
            batch = files[offset : offset + self.max_concurrency]
            settled = await asyncio.gather(*(self.audit_file(f) for f in batch), return_exceptions=True)
            for file, outcome in zip(batch, settled):
                if isinstance(outcome, BaseException):
                    logger.error("Unexpected failure while auditing %s: %s", file.path, outcome)
                    errors.append(f"{file.path}: {outcome}")
                    outcome = FileAuditResult(
                        file_path=file.path,
                        result=AuditResult.error(f"{ERROR_PREFIX}: {outcome}"),
                        duration_ms=0,
                    )
                results.append(outcome)
            if self._on_progress is not None:
                self._on_progress(min(offset + len(batch), total), total)

        return AuditRun(results=tuple(results), errors=tuple(errors), duration_ms=_elapsed_ms(start))

    async def audit_file(self, file: SanitizedFile) -> FileAuditResult:
        start = time.monotonic()
        state = AuditState.PENDING

        if self.cache is not None:
            cached = await self.cache.get(self.cache_key(self.provider, file))
            if cached is not None:
                logger.debug("%s: cache hit", file.path)
                return FileAuditResult(file_path=file.path, result=cached, duration_ms=_elapsed_ms(start), cached=True)

        chain = [self.provider, *self.fallbacks]
        user_prompt = build_user_prompt(file.path, file.content)
        max_attempts = max(1, self.retry_policy.max_attempts)
        index = 0
        attempt = 1
        last_error: Exception | None = None
        result: AuditResult | None = None
        state = AuditState.CALLING

        while state is not AuditState.DONE:
            provider = chain[index]

            if state is AuditState.RETRY:
                delay = self.retry_policy.delay_for(attempt)
                logger.warning(
                    "%s: %s error (attempt %d/%d): %s. Retrying in %.2fs...",
                    file.path,
                    provider.name,
                    attempt,
                    max_attempts,
                    last_error,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
                state = AuditState.CALLING if index == 0 else AuditState.FALLBACK
                continue

            try:
                raw = await provider.generate(self.system_prompt, user_prompt)
            except Exception as e:
                last_error = e
                if not is_retryable_error(e):
                    logger.error("%s: %s failed with a non-retryable error: %s", file.path, provider.name, e)
                    state = AuditState.DONE
                elif attempt < max_attempts:
                    state = AuditState.RETRY
                elif index + 1 < len(chain):
                    logger.warning(
                        "%s: %s exhausted %d attempt(s); falling back to %s.",
                        file.path,
                        provider.name,
                        max_attempts,
                        chain[index + 1].name,
                    )
                    index += 1
                    attempt = 1
                    state = AuditState.FALLBACK
                else:
                    logger.error("%s: every provider failed; last error: %s", file.path, e)
                    state = AuditState.DONE
                continue

            result = parse_audit_response(raw)
            if result.status != AuditStatus.ERROR and self.cache is not None:
                await self.cache.put(self.cache_key(provider, file), result)
            state = AuditState.DONE

        if result is None:
            result = AuditResult.error(f"{ERROR_PREFIX}: {last_error}")
        return FileAuditResult(file_path=file.path, result=result, duration_ms=_elapsed_ms(start))
