"""Unit tests for CUID generation utilities."""

from __future__ import annotations

from app.core.ids import generate_cuid, short_id


def test_generate_cuid_format_and_uniqueness() -> None:
    ids = [generate_cuid() for _ in range(200)]

    assert len(ids) == len(set(ids))
    assert all(len(item) == 24 for item in ids)
    assert all(item.startswith("c") for item in ids)
    assert all(item.isalnum() and item == item.lower() for item in ids)


def test_short_id_uses_id_suffix() -> None:
    assert short_id("cabcdefghijklmnop12345678") == "12345678"
    assert short_id("abc", size=8) == "abc"


def test_ids_from_the_same_millisecond_sort_in_creation_order(monkeypatch) -> None:
    monkeypatch.setattr("app.core.ids.time.time", lambda: 1_700_000_000.0)

    ids = [generate_cuid() for _ in range(5)]

    assert ids == sorted(ids)
