"""Moderation queue and revision decision endpoints."""

from fastapi import APIRouter, Query, status

from app.api.v1.dependencies import CurrentActor, Lifecycle, Queue
from app.core.exceptions import PermissionDeniedError
from app.domain.actors import Actor
from app.models.article import Article, PendingRevision
from app.schemas.article import ArticleResponse
from app.schemas.moderation import QueueItemResponse, QueueListResponse, RevisionResponse
from app.services.moderation_queue import QueueItem, QueueSort

router = APIRouter()


def _require_moderator(actor: Actor, operation: str) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError(operation)


def _queue_response(items: list[QueueItem]) -> QueueListResponse:
    return QueueListResponse(
        items=[QueueItemResponse.model_validate(item) for item in items],
        total=len(items),
    )


@router.get("/pending", response_model=QueueListResponse)
async def list_pending(
    current_actor: CurrentActor,
    queue: Queue,
    sort: QueueSort = Query(QueueSort.NEWEST),
) -> QueueListResponse:
    """Revisions awaiting a decision."""
    _require_moderator(current_actor, "list_pending")
    return _queue_response(await queue.list_pending(sort))


@router.get("/approved", response_model=QueueListResponse)
async def list_approved(
    current_actor: CurrentActor,
    queue: Queue,
    sort: QueueSort = Query(QueueSort.NEWEST),
) -> QueueListResponse:
    _require_moderator(current_actor, "list_approved")
    return _queue_response(await queue.list_approved(sort))


@router.get("/published", response_model=list[ArticleResponse])
async def list_published(
    current_actor: CurrentActor,
    queue: Queue,
    sort: QueueSort = Query(QueueSort.NEWEST),
) -> list[Article]:
    _require_moderator(current_actor, "list_published")
    return await queue.list_published_articles(sort)


@router.post("/revisions/{revision_id}/approve", response_model=RevisionResponse)
async def approve_revision(revision_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> PendingRevision:
    """Make a pending revision the live content."""
    return await lifecycle.approve_revision(revision_id, current_actor)


@router.post("/revisions/{revision_id}/reject", response_model=RevisionResponse)
async def reject_revision(revision_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> PendingRevision:
    """Discard a pending revision."""
    return await lifecycle.reject_revision(revision_id, current_actor)


@router.delete("/revisions/{revision_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_revision(revision_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> None:
    await lifecycle.delete_revision(revision_id, current_actor)
