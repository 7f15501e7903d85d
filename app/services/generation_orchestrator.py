"""Multi-item AI draft generation with bounded retries."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.db_kernel import db_read, db_write
from app.core.exceptions import DuplicateArticleError, ValidationError
from app.domain.actors import Actor
from app.domain.infobox import strip_infobox
from app.repositories.article_store import SqlArticleStore
from app.services.article_generation import (
    AI_VERSION_SUMMARY,
    ArticleGenerator,
    DuplicateChecker,
    ExistingArticle,
    GeneratedArticle,
    SubtopicPlanner,
)
from app.services.article_lifecycle import ArticleLifecycleService
from app.services.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
ProgressCallback = Callable[[int, int], Awaitable[None] | None]

EXCERPT_CHARS = 500


class BatchOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CancellationToken:
    """Cooperative cancel flag checked before every item and attempt."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(slots=True)
class GenerationJob:
    topics: list[str]
    count: int
    min_words: int = field(default_factory=lambda: settings.generation_default_min_words)
    max_words: int = field(default_factory=lambda: settings.generation_default_max_words)
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy.from_settings)
    expand_topics: bool = False


@dataclass(slots=True)
class ItemFailure:
    index: int
    topic: str
    attempts: int
    error: str


@dataclass(slots=True)
class BatchResult:
    outcome: BatchOutcome
    requested: int
    created_ids: list[str] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def created(self) -> int:
        return len(self.created_ids)

    @property
    def unmet(self) -> int:
        return self.requested - self.created

    @property
    def message(self) -> str:
        if self.outcome == BatchOutcome.SUCCEEDED:
            return f"Created {self.created} article(s)"
        if self.outcome == BatchOutcome.PARTIAL:
            return f"Created {self.created} of {self.requested} article(s); {self.unmet} could not be generated"
        if self.outcome == BatchOutcome.CANCELLED:
            return f"Cancelled after creating {self.created} of {self.requested} article(s)"
        return "No articles could be generated"


class DraftSink(Protocol):
    async def save_draft(self, generated: GeneratedArticle, actor: Actor) -> str:
        """Persist a generated draft and return its article id."""


class DatabaseDraftSink:
    """Persists each draft in its own short-lived write."""

    async def save_draft(self, generated: GeneratedArticle, actor: Actor) -> str:
        async def _create(session: AsyncSession) -> str:
            lifecycle = ArticleLifecycleService(SqlArticleStore(session))
            result = await lifecycle.create_article(
                actor,
                generated.to_changes(),
                is_ai_generated=True,
                categories_locked_by_ai=True,
                initial_summary=AI_VERSION_SUMMARY,
            )
            return result.article.id

        # Not retried: an ambiguous commit may already have created the draft.
        return await db_write(_create, operation_name="generation_save_draft", attempts=1)


class ArticleCatalog(Protocol):
    async def existing_articles(self) -> list[ExistingArticle]:
        """Articles a new draft must not duplicate."""


class DatabaseArticleCatalog:
    """Reads every stored article once per batch."""

    def __init__(self, excerpt_chars: int = EXCERPT_CHARS) -> None:
        self.excerpt_chars = excerpt_chars

    async def existing_articles(self) -> list[ExistingArticle]:
        async def _load(session: AsyncSession) -> list[ExistingArticle]:
            articles = await SqlArticleStore(session).list_articles()
            return [
                ExistingArticle(
                    id=article.id,
                    title=article.title,
                    excerpt=strip_infobox(article.content)[: self.excerpt_chars],
                )
                for article in articles
            ]

        return await db_read(_load, operation_name="generation_existing_articles")


class GenerationOrchestrator:
    """Runs a generation job one topic slot at a time."""

    def __init__(
        self,
        generator: ArticleGenerator,
        sink: DraftSink,
        *,
        sleep: Sleep = asyncio.sleep,
        max_batch_size: int | None = None,
        planner: SubtopicPlanner | None = None,
        duplicate_checker: DuplicateChecker | None = None,
        catalog: ArticleCatalog | None = None,
    ) -> None:
        self.generator = generator
        self.sink = sink
        self.sleep = sleep
        self.max_batch_size = max_batch_size or settings.generation_max_batch_size
        self.planner = planner
        self.duplicate_checker = duplicate_checker
        self.catalog = catalog

    def validate(self, job: GenerationJob) -> list[str]:
        """Return the trimmed topic list, or raise `ValidationError`."""
        topics = [topic.strip() for topic in job.topics if topic and topic.strip()]
        if not topics:
            raise ValidationError("At least one non-empty topic is required")
        if job.count < 1 or job.count > self.max_batch_size:
            raise ValidationError(
                f"Article count must be between 1 and {self.max_batch_size}",
                {"count": job.count},
            )
        if job.min_words < 1 or job.max_words < 1:
            raise ValidationError("Word bounds must be positive", {"min_words": job.min_words, "max_words": job.max_words})
        if job.min_words > job.max_words:
            raise ValidationError(
                "Minimum word count cannot exceed maximum",
                {"min_words": job.min_words, "max_words": job.max_words},
            )
        if job.expand_topics and self.planner is None:
            raise ValidationError("Topic expansion is not configured")
        return topics

    async def expand_topics(self, topics: list[str], count: int) -> list[str]:
        """Replace each broad topic with planned subtopics.

        Asks for `max(count * 3, 10)` subtopics per topic. A topic whose plan
        comes back empty or fails is kept as it is.
        """
        if self.planner is None:
            raise ValidationError("Topic expansion is not configured")
        wanted = max(count * 3, 10)
        expanded: list[str] = []
        seen: set[str] = set()
        for topic in topics:
            try:
                subtopics = await self.planner.plan(topic, wanted)
            except Exception as exc:
                logger.warning(
                    "Topic expansion failed",
                    extra={"topic": topic, "error_class": type(exc).__name__},
                )
                subtopics = []
            for name in subtopics or [topic]:
                key = name.strip().casefold()
                if key and key not in seen:
                    seen.add(key)
                    expanded.append(name.strip())
        logger.info("Generation topics expanded", extra={"topics": len(topics), "subtopics": len(expanded)})
        return expanded

    async def _known_articles(self) -> list[ExistingArticle]:
        if self.catalog is None:
            return []
        return list(await self.catalog.existing_articles())

    async def generate_batch(
        self,
        job: GenerationJob,
        actor: Actor,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        """Generate `job.count` drafts, visiting topics round-robin.

        Each item gets up to `retry_policy.max_attempts` attempts. An item that
        exhausts them is recorded in `failures` and never blocks later items.
        `on_progress(completed, count)` fires after each success only.
        Drafts are checked against stored articles and earlier drafts of the
        same batch; a duplicate counts as a failed attempt.
        """
        topics = self.validate(job)
        if job.expand_topics:
            topics = await self.expand_topics(topics, job.count)
        token = cancel_token or CancellationToken()
        policy = job.retry_policy
        result = BatchResult(outcome=BatchOutcome.FAILED, requested=job.count)
        known = await self._known_articles()

        logger.info(
            "Generation batch started",
            extra={"actor_id": actor.id, "count": job.count, "topics": len(topics)},
        )

        for index in range(job.count):
            if token.cancelled:
                break
            topic = topics[index % len(topics)]
            article_id, attempts, error = await self._run_item(index, topic, job, actor, policy, token, known)

            if article_id is not None:
                result.created_ids.append(article_id)
                if on_progress is not None:
                    maybe_awaitable = on_progress(result.created, job.count)
                    if inspect.isawaitable(maybe_awaitable):
                        await maybe_awaitable
                continue

            if token.cancelled and attempts == 0:
                break
            result.failures.append(ItemFailure(index=index, topic=topic, attempts=attempts, error=error))
            logger.warning(
                "Generation item failed",
                extra={"index": index, "topic": topic, "attempts": attempts, "error": error},
            )
            if index < job.count - 1 and not token.cancelled:
                await self.sleep(policy.failure_cooldown_seconds)

        result.outcome = self._outcome(result, token)
        logger.info(
            "Generation batch finished",
            extra={
                "actor_id": actor.id,
                "outcome": result.outcome.value,
                "created_count": result.created,
                "requested": job.count,
                "failures": len(result.failures),
            },
        )
        return result

    async def _run_item(
        self,
        index: int,
        topic: str,
        job: GenerationJob,
        actor: Actor,
        policy: RetryPolicy,
        token: CancellationToken,
        known: list[ExistingArticle],
    ) -> tuple[str | None, int, str]:
        """Returns (article_id, attempts_made, last_error).

        A saved draft is appended to `known`.
        """
        last_error = ""
        attempts = 0
        for attempt in range(1, policy.max_attempts + 1):
            if token.cancelled:
                break
            attempts = attempt
            try:
                generated = await self.generator.generate(
                    topic,
                    min_words=job.min_words,
                    max_words=job.max_words,
                    existing_titles=[item.title for item in known],
                )
                await self._reject_duplicate(topic, generated, known)
                article_id = await self.sink.save_draft(generated, actor)
                known.append(
                    ExistingArticle(
                        id=article_id,
                        title=generated.title,
                        excerpt=strip_infobox(generated.content)[:EXCERPT_CHARS],
                    )
                )
                logger.info(
                    "Generation item succeeded",
                    extra={"index": index, "topic": topic, "attempt": attempt, "article_id": article_id},
                )
                return article_id, attempts, ""
            except Exception as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning(
                    "Generation attempt failed",
                    extra={
                        "index": index,
                        "topic": topic,
                        "attempt": attempt,
                        "max_attempts": policy.max_attempts,
                        "error_class": type(exc).__name__,
                    },
                )
                if attempt < policy.max_attempts and not token.cancelled:
                    await self.sleep(policy.delay_after(attempt))

        return None, attempts, last_error or "cancelled"

    async def _reject_duplicate(self, topic: str, generated: GeneratedArticle, known: list[ExistingArticle]) -> None:
        if self.duplicate_checker is None:
            return
        verdict = await self.duplicate_checker.check(
            title=generated.title,
            content=generated.content,
            existing=known,
        )
        if verdict.is_duplicate:
            raise DuplicateArticleError(topic, verdict.reason, verdict.similar_ids)

    @staticmethod
    def _outcome(result: BatchResult, token: CancellationToken) -> BatchOutcome:
        if token.cancelled and result.created < result.requested:
            return BatchOutcome.CANCELLED
        if result.created == 0:
            return BatchOutcome.FAILED
        if result.created < result.requested:
            return BatchOutcome.PARTIAL
        return BatchOutcome.SUCCEEDED
