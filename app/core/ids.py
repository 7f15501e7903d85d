"""Identifier utilities for articles, versions and revisions."""

from __future__ import annotations

import secrets
import threading
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_LAST_MILLIS = 0
_COUNTER = 0
_LOCK = threading.Lock()


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    chars: list[str] = []
    current = value
    while current:
        current, remainder = divmod(current, 36)
        chars.append(_ALPHABET[remainder])
    return "".join(reversed(chars))


def _random_alnum(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(max(length, 0)))


def generate_cuid(length: int = 24) -> str:
    """Generate a collision-resistant lowercase identifier with a `c` prefix.

    Identifiers created in the same millisecond keep their creation order, which
    the version store relies on when two versions share a timestamp.
    """
    global _LAST_MILLIS, _COUNTER

    now_millis = int(time.time() * 1000)
    with _LOCK:
        if now_millis <= _LAST_MILLIS:
            _COUNTER += 1
            now_millis = _LAST_MILLIS
        else:
            _LAST_MILLIS = now_millis
            _COUNTER = 0
        counter = _COUNTER

    static_part = f"{_to_base36(now_millis)}{_to_base36(counter).rjust(4, '0')}"
    body_len = max(length - 1, 8)
    body = f"{static_part}{_random_alnum(body_len - len(static_part))}"[:body_len]
    return f"c{body}"


def short_id(identifier: str, size: int = 8) -> str:
    """Return the distinguishing tail of a CUID for human-facing fallbacks."""
    cleaned = identifier.strip().lower()
    return cleaned[-size:] if len(cleaned) > size else cleaned
