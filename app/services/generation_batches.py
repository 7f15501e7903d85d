"""Background execution of generation batches with status reporting."""

from __future__ import annotations

import logging
from dataclasses import asdict

from app.core.logging import bind_log_context
from app.domain.actors import Actor
from app.services.batch_status import RUNNING, BatchStatusStore
from app.services.generation_orchestrator import (
    BatchResult,
    CancellationToken,
    GenerationJob,
    GenerationOrchestrator,
)

logger = logging.getLogger(__name__)

# Tokens of batches running in this process, by batch id.
_RUNNING_TOKENS: dict[str, CancellationToken] = {}


def cancel_local_batch(batch_id: str) -> bool:
    """Fire the cancel token of a batch running in this process."""
    token = _RUNNING_TOKENS.get(batch_id)
    if token is None:
        return False
    token.cancel()
    return True


async def run_generation_batch(
    batch_id: str,
    job: GenerationJob,
    actor: Actor,
    *,
    orchestrator: GenerationOrchestrator,
    status_store: BatchStatusStore,
) -> BatchResult:
    """Run a batch and mirror its progress into the status store."""
    token = CancellationToken()
    _RUNNING_TOKENS[batch_id] = token
    await status_store.update(batch_id, status=RUNNING, completed=0)

    async def _on_progress(completed: int, count: int) -> None:
        await status_store.update(batch_id, completed=completed)
        if await status_store.is_cancel_requested(batch_id):
            token.cancel()

    try:
        with bind_log_context(batch_id=batch_id, actor_id=actor.id):
            result = await orchestrator.generate_batch(
                job,
                actor,
                on_progress=_on_progress,
                cancel_token=token,
            )
    except Exception as exc:
        logger.exception("Generation batch crashed", extra={"batch_id": batch_id})
        await status_store.update(batch_id, status="failed", message=str(exc) or type(exc).__name__)
        raise
    finally:
        _RUNNING_TOKENS.pop(batch_id, None)

    await status_store.update(
        batch_id,
        status=result.outcome.value,
        completed=result.created,
        created_ids=result.created_ids,
        failures=[asdict(failure) for failure in result.failures],
        message=result.message,
    )
    return result
