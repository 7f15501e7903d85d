"""Short-lived read/write units of work with store error translation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from time import monotonic
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.database import get_session_context
from app.core.db_retry import is_transient_connection_error
from app.core.exceptions import (
    ConcurrencyConflictError,
    PermanentStoreError,
    PlexipediaError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")


def translate_store_error(exc: Exception) -> PlexipediaError:
    """Map a raw persistence failure onto the application error hierarchy.

    Application errors raised inside a unit of work pass through unchanged.
    """
    if isinstance(exc, PlexipediaError):
        return exc
    if isinstance(exc, StaleDataError):
        return ConcurrencyConflictError("Article was modified by another writer", cause=str(exc))
    if isinstance(exc, IntegrityError):
        return ConcurrencyConflictError("Write conflicts with existing data", cause=str(exc.orig))
    if is_transient_connection_error(exc):
        return TransientStoreError(str(exc))
    return PermanentStoreError(str(exc))


def _elapsed_ms(started: float) -> float:
    return round((monotonic() - started) * 1000, 2)


async def db_read(
    fn: Callable[[AsyncSession], Awaitable[_ResultT]],
    *,
    operation_name: str,
) -> _ResultT:
    """Execute a read operation in a short-lived session."""
    started = monotonic()
    try:
        async with get_session_context(commit_on_exit=False) as session:
            result = await fn(session)
        logger.debug(
            "DB read operation completed",
            extra={"operation": operation_name, "duration_ms": _elapsed_ms(started)},
        )
        return result
    except Exception as exc:
        translated = translate_store_error(exc)
        if translated is exc:
            raise
        logger.warning(
            "DB read operation failed",
            extra={
                "operation": operation_name,
                "duration_ms": _elapsed_ms(started),
                "failure_class": type(translated).__name__,
            },
        )
        raise translated from exc


async def db_write(
    fn: Callable[[AsyncSession], Awaitable[_ResultT]],
    *,
    operation_name: str,
    attempts: int = 3,
    base_delay_seconds: float = 0.2,
) -> _ResultT:
    """Execute a write operation, retrying transient connection failures.

    The callable runs in a fresh session per attempt and is committed once it
    returns, so it must be safe to re-run from scratch.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    started = monotonic()
    for attempt in range(1, attempts + 1):
        try:
            async with get_session_context(commit_on_exit=False) as session:
                result = await fn(session)
                await session.commit()
            logger.debug(
                "DB write operation completed",
                extra={
                    "operation": operation_name,
                    "duration_ms": _elapsed_ms(started),
                    "attempt": attempt,
                    "max_attempts": attempts,
                },
            )
            return result
        except Exception as exc:
            translated = translate_store_error(exc)
            if translated is exc:
                raise
            is_retryable = isinstance(translated, TransientStoreError) and attempt < attempts
            logger.warning(
                "DB write operation failed",
                extra={
                    "operation": operation_name,
                    "duration_ms": _elapsed_ms(started),
                    "failure_class": type(translated).__name__,
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "will_retry": is_retryable,
                },
            )
            if not is_retryable:
                raise translated from exc
            await asyncio.sleep(base_delay_seconds * attempt)

    raise RuntimeError(f"DB write retry loop exhausted unexpectedly: {operation_name}")
