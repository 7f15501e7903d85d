"""Reusable API dependencies shared across v1 routes."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.exceptions import InvalidTokenError
from app.core.security import actor_from_token
from app.domain.actors import Actor
from app.repositories.article_store import SqlArticleStore
from app.services.article_generation import (
    AgentArticleGenerator,
    AgentCategorySuggester,
    AgentDuplicateChecker,
    AgentSubtopicPlanner,
)
from app.services.article_lifecycle import ArticleLifecycleService
from app.services.batch_status import BatchStatusStore
from app.services.generation_orchestrator import (
    DatabaseArticleCatalog,
    DatabaseDraftSink,
    GenerationOrchestrator,
)
from app.services.moderation_queue import ModerationQueue
from app.services.slug_resolver import SlugResolver
from app.services.version_store import VersionStore
from app.services.writing_assistant import AgentWritingAssistant

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Actor:
    """Resolve the requesting actor from the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return actor_from_token(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
DbSession = Annotated[AsyncSession, Depends(get_session)]


def get_lifecycle_service(session: DbSession) -> ArticleLifecycleService:
    return ArticleLifecycleService(
        SqlArticleStore(session),
        category_suggester=AgentCategorySuggester(),
        writing_assistant=AgentWritingAssistant(),
    )


def get_version_store(session: DbSession) -> VersionStore:
    return VersionStore(SqlArticleStore(session))


def get_moderation_queue(session: DbSession) -> ModerationQueue:
    return ModerationQueue(SqlArticleStore(session))


def get_slug_resolver(session: DbSession) -> SlugResolver:
    return SlugResolver(SqlArticleStore(session))


def get_batch_status_store() -> BatchStatusStore:
    return BatchStatusStore()


def get_generation_orchestrator() -> GenerationOrchestrator:
    return GenerationOrchestrator(
        AgentArticleGenerator(),
        DatabaseDraftSink(),
        planner=AgentSubtopicPlanner(),
        duplicate_checker=AgentDuplicateChecker(),
        catalog=DatabaseArticleCatalog(),
    )


Lifecycle = Annotated[ArticleLifecycleService, Depends(get_lifecycle_service)]
Versions = Annotated[VersionStore, Depends(get_version_store)]
Queue = Annotated[ModerationQueue, Depends(get_moderation_queue)]
Slugs = Annotated[SlugResolver, Depends(get_slug_resolver)]
BatchStatus = Annotated[BatchStatusStore, Depends(get_batch_status_store)]
Orchestrator = Annotated[GenerationOrchestrator, Depends(get_generation_orchestrator)]

__all__ = [
    "BatchStatus",
    "CurrentActor",
    "DbSession",
    "Lifecycle",
    "Orchestrator",
    "Queue",
    "Slugs",
    "Versions",
    "get_batch_status_store",
    "get_current_actor",
    "get_generation_orchestrator",
    "get_lifecycle_service",
    "get_moderation_queue",
    "get_slug_resolver",
    "get_version_store",
]
