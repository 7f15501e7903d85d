"""Unit tests for DB kernel helpers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from app.core.db_kernel import db_read, db_write, translate_store_error
from app.core.exceptions import (
    ArticleNotFoundError,
    ConcurrencyConflictError,
    PermanentStoreError,
    TransientStoreError,
)


class _FakeSession:
    def __init__(self) -> None:
        self.commit_calls = 0

    async def commit(self) -> None:
        self.commit_calls += 1


def _patch_context(monkeypatch: pytest.MonkeyPatch, session: _FakeSession) -> None:
    @asynccontextmanager
    async def _fake_context(*, commit_on_exit: bool = True):
        assert commit_on_exit is False
        yield session

    monkeypatch.setattr("app.core.db_kernel.get_session_context", _fake_context)


@pytest.mark.asyncio
async def test_db_read_uses_short_lived_session(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _FakeSession()
    _patch_context(monkeypatch, session)

    result = await db_read(lambda s: _echo("ok", s), operation_name="unit_read")

    assert result == "ok"
    assert session.commit_calls == 0


@pytest.mark.asyncio
async def test_db_write_retries_transient_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _FakeSession()
    calls = {"count": 0}
    _patch_context(monkeypatch, session)

    async def _operation(_session: _FakeSession) -> str:
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("connection is closed")
        return "done"

    result = await db_write(
        _operation,
        operation_name="unit_write",
        attempts=2,
        base_delay_seconds=0.0,
    )

    assert result == "done"
    assert calls["count"] == 2
    assert session.commit_calls == 1


@pytest.mark.asyncio
async def test_db_write_raises_permanent_on_non_transient_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _patch_context(monkeypatch, _FakeSession())

    async def _operation(_session: _FakeSession) -> None:
        raise ValueError("bad payload")

    with pytest.raises(PermanentStoreError):
        await db_write(_operation, operation_name="unit_write_perm", attempts=2, base_delay_seconds=0.0)


@pytest.mark.asyncio
async def test_db_write_translates_integrity_conflict_without_retry(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls = {"count": 0}
    _patch_context(monkeypatch, _FakeSession())

    async def _operation(_session: _FakeSession) -> None:
        calls["count"] += 1
        raise IntegrityError("INSERT ...", {}, Exception("duplicate key"))

    with pytest.raises(ConcurrencyConflictError):
        await db_write(_operation, operation_name="unit_write_conflict", attempts=3, base_delay_seconds=0.0)

    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_db_write_exhausted_transient_retry_raises_transient(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _patch_context(monkeypatch, _FakeSession())

    async def _operation(_session: _FakeSession) -> None:
        raise RuntimeError("connection is closed")

    with pytest.raises(TransientStoreError):
        await db_write(_operation, operation_name="unit_write_transient", attempts=2, base_delay_seconds=0.0)


@pytest.mark.asyncio
async def test_db_write_passes_application_errors_through(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_context(monkeypatch, _FakeSession())

    async def _operation(_session: _FakeSession) -> None:
        raise ArticleNotFoundError("a1")

    with pytest.raises(ArticleNotFoundError):
        await db_write(_operation, operation_name="unit_write_app_error")


def test_stale_data_maps_to_concurrency_conflict() -> None:
    translated = translate_store_error(StaleDataError("UPDATE statement on table 'articles' expected 1 row"))

    assert isinstance(translated, ConcurrencyConflictError)


async def _echo(value: str, _session: Any) -> str:
    return value
