"""Generation batch status backed by Redis."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis

from app.config import settings
from app.core.redis import get_redis_client

logger = logging.getLogger(__name__)

BATCH_KEY_PREFIX = "generation_batch"
UNSET: object = object()

QUEUED = "queued"
RUNNING = "running"
TERMINAL_STATUSES = frozenset({"succeeded", "partial", "failed", "cancelled"})


class BatchStatusStore:
    """Store and fetch generation batch progress from Redis.

    The cancel flag lives under its own key so progress writes, which
    rewrite the whole status document, can never clear it.
    """

    def __init__(self, redis_client: Redis | None = None) -> None:
        self.redis = redis_client or get_redis_client()
        self.ttl_seconds = settings.batch_status_ttl_seconds

    async def get(self, batch_id: str) -> dict[str, Any] | None:
        """Get batch status by batch ID."""
        raw = await self.redis.get(self._batch_key(batch_id))
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Invalid batch payload in Redis", extra={"batch_id": batch_id})
            return None
        payload["cancel_requested"] = await self.is_cancel_requested(batch_id)
        return payload

    async def create(
        self,
        batch_id: str,
        *,
        actor_id: str,
        topics: list[str],
        count: int,
    ) -> dict[str, Any]:
        now = self._now_iso()
        payload = {
            "batch_id": batch_id,
            "actor_id": actor_id,
            "topics": topics,
            "status": QUEUED,
            "completed": 0,
            "count": count,
            "created_ids": [],
            "failures": [],
            "message": None,
            "created_at": now,
            "updated_at": now,
        }
        await self._save(batch_id, payload)
        payload["cancel_requested"] = False
        return payload

    async def update(
        self,
        batch_id: str,
        *,
        status: str | None = None,
        completed: int | None = None,
        created_ids: list[str] | None = None,
        failures: list[dict[str, Any]] | None = None,
        message: str | None | object = UNSET,
    ) -> dict[str, Any]:
        """Create or update batch state."""
        payload = await self.get(batch_id) or {"batch_id": batch_id, "created_at": self._now_iso()}
        payload["updated_at"] = self._now_iso()

        updates = {
            "status": status,
            "completed": completed,
            "created_ids": created_ids,
            "failures": failures,
        }
        for key, value in updates.items():
            if value is not None:
                payload[key] = value
        if message is not UNSET:
            payload["message"] = message

        await self._save(batch_id, payload)
        return payload

    async def request_cancel(self, batch_id: str) -> dict[str, Any] | None:
        """Flag a batch for cancellation; returns None for unknown batches."""
        payload = await self.get(batch_id)
        if payload is None:
            return None
        if payload.get("status") in TERMINAL_STATUSES:
            return payload

        await self.redis.set(self._cancel_key(batch_id), "1", ex=self.ttl_seconds)
        payload["cancel_requested"] = True
        logger.info("Batch cancellation requested", extra={"batch_id": batch_id})
        return payload

    async def is_cancel_requested(self, batch_id: str) -> bool:
        return await self.redis.get(self._cancel_key(batch_id)) is not None

    async def _save(self, batch_id: str, payload: dict[str, Any]) -> None:
        stored = {key: value for key, value in payload.items() if key != "cancel_requested"}
        await self.redis.set(
            self._batch_key(batch_id),
            json.dumps(stored),
            ex=self.ttl_seconds,
        )

    @staticmethod
    def _batch_key(batch_id: str) -> str:
        return f"{BATCH_KEY_PREFIX}:{batch_id}"

    @staticmethod
    def _cancel_key(batch_id: str) -> str:
        return f"{BATCH_KEY_PREFIX}:{batch_id}:cancel"

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()
