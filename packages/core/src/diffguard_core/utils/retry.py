from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff with jitter. Delays are in seconds."""

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    jitter: float = 0.1

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows failed attempt number ``attempt`` (1-based)."""
        backoff = self.base_delay * 2 ** (attempt - 1)
        return min(backoff + random.uniform(0, self.jitter), self.max_delay)
