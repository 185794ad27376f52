"""Exception hierarchy shared by every diffguard stage.

Configuration and budget errors abort a run before any provider call.
Provider errors are classified retryable or terminal; the orchestrator
uses that flag to decide between the retry/fallback loop and an immediate
per-file ERROR result.
"""

from __future__ import annotations

_RETRYABLE_STATUS = frozenset({408, 409, 429, 500, 502, 503, 504})
_RETRYABLE_MARKERS = ("429", "500", "502", "503", "504", "ECONNRESET", "ETIMEDOUT")


class DiffguardError(Exception):
    """Base exception for all diffguard errors."""


class ConfigurationError(DiffguardError):
    """Invalid or conflicting user input. The run never starts."""


class BudgetExceededError(DiffguardError):
    """The sanitized payload does not fit the provider's context window."""

    def __init__(self, total: int, limit: int) -> None:
        super().__init__(
            f"Estimated payload of {total:,} tokens exceeds the provider limit of {limit:,} tokens. "
            "Reduce the change-set or lower ai.max_files / ai.max_chars_per_file."
        )
        self.total = total
        self.limit = limit


class ProviderError(DiffguardError):
    """Base exception for LLM provider failures."""

    retryable: bool = False


class ProviderAuthError(ProviderError):
    """Invalid or missing credentials. Never retried."""


class ProviderAPIError(ProviderError):
    """Errors reported by the vendor API (rate limits, server errors, bad requests)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code is not None and (self.status_code in _RETRYABLE_STATUS or self.status_code >= 500)


class ProviderTimeoutError(ProviderError):
    """The call did not finish within the configured timeout."""

    retryable = True


class ProviderConnectionError(ProviderError):
    """Network-level failure (reset, refused, DNS)."""

    retryable = True


def is_retryable_error(exc: BaseException) -> bool:
    """Return True when *exc* belongs to the transient failure class.

    Rate limits, 5xx responses, connection resets and timeouts are retryable.
    Everything else, including auth and validation failures, is terminal.
    """
    if isinstance(exc, ProviderError):
        return exc.retryable
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True
    message = str(exc)
    return any(marker in message for marker in _RETRYABLE_MARKERS)
