"""Generation batch endpoints."""

import logging
from dataclasses import replace
from typing import Any

from fastapi import APIRouter, BackgroundTasks, status

from app.api.v1.dependencies import BatchStatus, CurrentActor, Orchestrator
from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.core.ids import generate_cuid
from app.domain.actors import Actor
from app.schemas.generation import (
    GenerationBatchCreate,
    GenerationBatchResponse,
    SubtopicPlanRequest,
    SubtopicPlanResponse,
)
from app.services.generation_batches import cancel_local_batch, run_generation_batch
from app.services.generation_orchestrator import GenerationJob

logger = logging.getLogger(__name__)

router = APIRouter()


class BatchNotFoundError(NotFoundError):
    def __init__(self, batch_id: str) -> None:
        super().__init__(f"Generation batch not found: {batch_id}", {"batch_id": batch_id})


def _check_owner(payload: dict[str, Any], actor: Actor) -> None:
    if payload.get("actor_id") != actor.id and not actor.is_admin:
        raise PermissionDeniedError("view_generation_batch")


@router.post("/batches", response_model=GenerationBatchResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_generation_batch(
    payload: GenerationBatchCreate,
    current_actor: CurrentActor,
    orchestrator: Orchestrator,
    status_store: BatchStatus,
    background_tasks: BackgroundTasks,
) -> GenerationBatchResponse:
    """Validate a batch request and run it in the background."""
    job = GenerationJob(topics=payload.topics, count=payload.count, expand_topics=payload.expand_topics)
    if payload.min_words is not None:
        job.min_words = payload.min_words
    if payload.max_words is not None:
        job.max_words = payload.max_words
    if payload.max_retries_per_item is not None:
        job.retry_policy = replace(job.retry_policy, max_attempts=payload.max_retries_per_item)
    job.topics = orchestrator.validate(job)

    batch_id = generate_cuid()
    state = await status_store.create(
        batch_id,
        actor_id=current_actor.id,
        topics=job.topics,
        count=job.count,
    )
    background_tasks.add_task(
        run_generation_batch,
        batch_id,
        job,
        current_actor,
        orchestrator=orchestrator,
        status_store=status_store,
    )
    logger.info(
        "Generation batch queued",
        extra={"batch_id": batch_id, "actor_id": current_actor.id, "count": job.count},
    )
    return GenerationBatchResponse.model_validate(state)


@router.get("/batches/{batch_id}", response_model=GenerationBatchResponse)
async def get_generation_batch(
    batch_id: str,
    current_actor: CurrentActor,
    status_store: BatchStatus,
) -> GenerationBatchResponse:
    """Get batch progress from Redis."""
    state = await status_store.get(batch_id)
    if state is None:
        raise BatchNotFoundError(batch_id)
    _check_owner(state, current_actor)
    return GenerationBatchResponse.model_validate(state)


@router.post("/batches/{batch_id}/cancel", response_model=GenerationBatchResponse)
async def cancel_generation_batch(
    batch_id: str,
    current_actor: CurrentActor,
    status_store: BatchStatus,
) -> GenerationBatchResponse:
    """Request cancellation; the batch stops before its next item or attempt."""
    state = await status_store.get(batch_id)
    if state is None:
        raise BatchNotFoundError(batch_id)
    _check_owner(state, current_actor)

    state = await status_store.request_cancel(batch_id) or state
    cancel_local_batch(batch_id)
    return GenerationBatchResponse.model_validate(state)


@router.post("/subtopics", response_model=SubtopicPlanResponse)
async def plan_subtopics(
    payload: SubtopicPlanRequest,
    _current_actor: CurrentActor,
    orchestrator: Orchestrator,
) -> SubtopicPlanResponse:
    """Preview the topics a batch with `expand_topics` would draft from."""
    job = GenerationJob(topics=payload.topics, count=payload.count, expand_topics=True)
    topics = orchestrator.validate(job)
    return SubtopicPlanResponse(topics=await orchestrator.expand_topics(topics, job.count))
