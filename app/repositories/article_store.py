"""Article store contract and its SQLAlchemy implementation."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_kernel import translate_store_error
from app.models.article import Article, ArticleVersion, ModerationIntent, PendingRevision
from app.models.generated_dtos import (
    ArticleCreateDTO,
    ArticlePatchDTO,
    ArticleVersionCreateDTO,
    ModerationIntentCreateDTO,
    PendingRevisionCreateDTO,
    PendingRevisionPatchDTO,
)

logger = logging.getLogger(__name__)


class ArticleStore(Protocol):
    """Persistence operations the engine needs from a document store.

    `supports_transactions` tells the lifecycle service whether multi-document
    moderation writes can run inside `transaction()` or need a write-ahead
    intent instead.
    """

    supports_transactions: bool

    def transaction(self) -> Any:
        """Async context manager grouping writes into one atomic unit."""

    async def get_article(self, article_id: str) -> Article | None: ...

    async def find_article_by_slug(self, slug: str) -> Article | None: ...

    async def list_articles(self, *, statuses: Iterable[str] | None = None) -> list[Article]: ...

    async def create_article(self, dto: ArticleCreateDTO) -> Article: ...

    async def patch_article(self, article: Article, updates: Mapping[str, Any]) -> Article: ...

    async def delete_article(self, article: Article) -> None:
        """Delete the article with every version, revision and intent referencing it."""

    async def create_version(self, dto: ArticleVersionCreateDTO) -> ArticleVersion: ...

    async def get_version(self, version_id: str) -> ArticleVersion | None: ...

    async def get_version_by_number(self, article_id: str, number: int) -> ArticleVersion | None: ...

    async def list_versions(self, article_id: str) -> list[ArticleVersion]:
        """Versions of one article, oldest first."""

    async def create_revision(self, dto: PendingRevisionCreateDTO) -> PendingRevision: ...

    async def get_revision(self, revision_id: str) -> PendingRevision | None: ...

    async def patch_revision(
        self,
        revision: PendingRevision,
        updates: Mapping[str, Any],
    ) -> PendingRevision: ...

    async def list_revisions(
        self,
        *,
        status: str | None = None,
        article_id: str | None = None,
    ) -> list[PendingRevision]: ...

    async def next_revision_sequence(self, article_id: str) -> int: ...

    async def delete_revision(self, revision: PendingRevision) -> None: ...

    async def add_intent(self, dto: ModerationIntentCreateDTO) -> ModerationIntent: ...

    async def list_intents(self) -> list[ModerationIntent]: ...

    async def delete_intent(self, intent: ModerationIntent) -> None: ...


class SqlArticleStore:
    """`ArticleStore` bound to one async SQLAlchemy session.

    Writes are flushed immediately so constraint and optimistic-lock failures
    surface at the call site; the owning session commits.
    """

    supports_transactions = True

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _flush(self, operation: str) -> None:
        try:
            await self.session.flush()
        except Exception as exc:
            translated = translate_store_error(exc)
            logger.warning(
                "Store flush failed",
                extra={"operation": operation, "failure_class": type(translated).__name__},
            )
            raise translated from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        try:
            async with self.session.begin_nested():
                yield
        except Exception as exc:
            translated = translate_store_error(exc)
            if translated is exc:
                raise
            raise translated from exc

    async def get_article(self, article_id: str) -> Article | None:
        return await Article.get(self.session, article_id)

    async def find_article_by_slug(self, slug: str) -> Article | None:
        result = await self.session.execute(select(Article).where(Article.slug == slug))
        return result.scalar_one_or_none()

    async def list_articles(self, *, statuses: Iterable[str] | None = None) -> list[Article]:
        stmt = select(Article)
        if statuses is not None:
            stmt = stmt.where(Article.status.in_(list(statuses)))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_article(self, dto: ArticleCreateDTO) -> Article:
        article = Article.create(self.session, dto)
        await self._flush("create_article")
        return article

    async def patch_article(self, article: Article, updates: Mapping[str, Any]) -> Article:
        article.patch(self.session, ArticlePatchDTO.from_partial(dict(updates)))
        await self._flush("patch_article")
        return article

    async def delete_article(self, article: Article) -> None:
        article_id = article.id
        await self.session.execute(delete(ModerationIntent).where(ModerationIntent.article_id == article_id))
        await self.session.execute(delete(PendingRevision).where(PendingRevision.article_id == article_id))
        await self.session.execute(delete(ArticleVersion).where(ArticleVersion.article_id == article_id))
        await article.delete(self.session)
        await self._flush("delete_article")

    async def create_version(self, dto: ArticleVersionCreateDTO) -> ArticleVersion:
        version = ArticleVersion.create(self.session, dto)
        await self._flush("create_version")
        return version

    async def get_version(self, version_id: str) -> ArticleVersion | None:
        return await ArticleVersion.get(self.session, version_id)

    async def get_version_by_number(self, article_id: str, number: int) -> ArticleVersion | None:
        result = await self.session.execute(
            select(ArticleVersion).where(
                ArticleVersion.article_id == article_id,
                ArticleVersion.version_number == number,
            )
        )
        return result.scalar_one_or_none()

    async def list_versions(self, article_id: str) -> list[ArticleVersion]:
        result = await self.session.execute(
            select(ArticleVersion)
            .where(ArticleVersion.article_id == article_id)
            .order_by(ArticleVersion.version_number.asc())
        )
        return list(result.scalars().all())

    async def create_revision(self, dto: PendingRevisionCreateDTO) -> PendingRevision:
        revision = PendingRevision.create(self.session, dto)
        await self._flush("create_revision")
        return revision

    async def get_revision(self, revision_id: str) -> PendingRevision | None:
        return await PendingRevision.get(self.session, revision_id)

    async def patch_revision(
        self,
        revision: PendingRevision,
        updates: Mapping[str, Any],
    ) -> PendingRevision:
        revision.patch(self.session, PendingRevisionPatchDTO.from_partial(dict(updates)))
        await self._flush("patch_revision")
        return revision

    async def list_revisions(
        self,
        *,
        status: str | None = None,
        article_id: str | None = None,
    ) -> list[PendingRevision]:
        stmt = select(PendingRevision)
        if status is not None:
            stmt = stmt.where(PendingRevision.status == status)
        if article_id is not None:
            stmt = stmt.where(PendingRevision.article_id == article_id)
        result = await self.session.execute(stmt.order_by(PendingRevision.created_at.asc()))
        return list(result.scalars().all())

    async def next_revision_sequence(self, article_id: str) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.max(PendingRevision.sequence), 0)).where(
                PendingRevision.article_id == article_id
            )
        )
        return int(result.scalar_one()) + 1

    async def delete_revision(self, revision: PendingRevision) -> None:
        await revision.delete(self.session)
        await self._flush("delete_revision")

    async def add_intent(self, dto: ModerationIntentCreateDTO) -> ModerationIntent:
        intent = ModerationIntent.create(self.session, dto)
        await self._flush("add_intent")
        return intent

    async def list_intents(self) -> list[ModerationIntent]:
        result = await self.session.execute(
            select(ModerationIntent).order_by(ModerationIntent.created_at.asc())
        )
        return list(result.scalars().all())

    async def delete_intent(self, intent: ModerationIntent) -> None:
        await intent.delete(self.session)
        await self._flush("delete_intent")
