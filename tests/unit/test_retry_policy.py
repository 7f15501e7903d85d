"""Unit tests for the generation retry policy."""

from __future__ import annotations

import random

import pytest

from app.config import settings
from app.services.retry_policy import RetryPolicy


def test_defaults_are_fixed_delay() -> None:
    policy = RetryPolicy()

    assert policy.max_attempts == 3
    assert [policy.delay_after(attempt) for attempt in (1, 2, 3)] == [1.0, 1.0, 1.0]
    assert policy.failure_cooldown_seconds == 2.0


def test_exponential_backoff_is_capped() -> None:
    policy = RetryPolicy(retry_delay_seconds=1.0, backoff_multiplier=2.0, max_delay_seconds=5.0)

    assert [policy.delay_after(attempt) for attempt in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]


def test_jitter_stays_within_ratio() -> None:
    policy = RetryPolicy(retry_delay_seconds=10.0, jitter_ratio=0.2)
    rng = random.Random(7)

    delays = [policy.delay_after(1, rng=rng) for _ in range(50)]

    assert all(8.0 <= delay <= 12.0 for delay in delays)
    assert len(set(delays)) > 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"retry_delay_seconds": -1},
        {"failure_cooldown_seconds": -0.5},
        {"backoff_multiplier": 0.5},
        {"jitter_ratio": 1.5},
    ],
)
def test_invalid_policies_are_rejected(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_from_settings() -> None:
    original = settings.generation_max_attempts_per_item
    settings.generation_max_attempts_per_item = 5
    try:
        policy = RetryPolicy.from_settings()
    finally:
        settings.generation_max_attempts_per_item = original

    assert policy.max_attempts == 5
    assert policy.retry_delay_seconds == settings.generation_retry_delay_seconds
