"""Retry policy for per-item generation attempts."""

from __future__ import annotations

import random
from dataclasses import dataclass

from app.config import settings


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """How many times to try one batch item and how long to wait.

    `retry_delay_seconds` is the pause between attempts of the same item;
    `failure_cooldown_seconds` is the pause after an item exhausts its
    attempts, before the next item starts.
    """

    max_attempts: int = 3
    retry_delay_seconds: float = 1.0
    failure_cooldown_seconds: float = 2.0
    backoff_multiplier: float = 1.0
    max_delay_seconds: float = 30.0
    jitter_ratio: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.retry_delay_seconds < 0 or self.failure_cooldown_seconds < 0:
            raise ValueError("delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if not 0 <= self.jitter_ratio <= 1:
            raise ValueError("jitter_ratio must be between 0 and 1")

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            max_attempts=settings.generation_max_attempts_per_item,
            retry_delay_seconds=settings.generation_retry_delay_seconds,
            failure_cooldown_seconds=settings.generation_failure_cooldown_seconds,
        )

    def delay_after(self, attempt: int, *, rng: random.Random | None = None) -> float:
        """Delay before attempt `attempt + 1`, for 1-based `attempt`.

        With the default multiplier of 1 the delay is fixed.
        """
        delay = self.retry_delay_seconds * (self.backoff_multiplier ** max(attempt - 1, 0))
        delay = min(delay, self.max_delay_seconds)
        if self.jitter_ratio:
            spread = delay * self.jitter_ratio
            delay += (rng or random).uniform(-spread, spread)
        return max(delay, 0.0)
