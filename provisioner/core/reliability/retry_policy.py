"""
Retry policy — bounded attempts with exponential backoff.

Delays grow geometrically from ``base_delay`` by ``factor`` and are
capped at ``max_delay``.  No jitter: a run with the same policy waits
the same amounts, which keeps retry behaviour predictable in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try, and how long to wait in between."""

    max_attempts: int = 4
    base_delay: float = 2.0
    factor: float = 1.5
    max_delay: float = 60.0

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        if attempt < 1:
            raise ValueError("attempt is 1-based")
        return min(self.base_delay * (self.factor ** (attempt - 1)), self.max_delay)

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` failed."""
        return attempt < self.max_attempts

    @classmethod
    def from_settings(cls, settings) -> RetryPolicy:
        """Build from a ``DownloadSettings`` model."""
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            factor=settings.backoff_factor,
            max_delay=settings.max_delay,
        )
