"""Shared in-memory fakes for service tests."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Iterator, Mapping
from contextlib import asynccontextmanager
from typing import Any, cast

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import TransientStoreError
from app.domain.actors import Actor
from app.models.article import Article, ArticleVersion, ModerationIntent, PendingRevision
from app.models.generated_dtos import (
    ArticleCreateDTO,
    ArticlePatchDTO,
    ArticleVersionCreateDTO,
    ModerationIntentCreateDTO,
    PendingRevisionCreateDTO,
    PendingRevisionPatchDTO,
)


class _RecordingSession:
    """Just enough session for the typed write adapters."""

    def add(self, instance: object) -> None:
        pass

    async def delete(self, instance: object) -> None:
        pass


def _columns(instance: Any) -> dict[str, Any]:
    return {column.key: getattr(instance, column.key) for column in instance.__table__.columns}


class InMemoryArticleStore:
    """Dict-backed `ArticleStore` with failure injection.

    `fail_next("patch_revision")` makes the next `patch_revision` call
    raise; with `supports_transactions` the store snapshots state on
    `transaction()` entry and restores it when the block raises.
    """

    def __init__(self, *, supports_transactions: bool = False) -> None:
        self.supports_transactions = supports_transactions
        self.articles: dict[str, Article] = {}
        self.versions: dict[str, ArticleVersion] = {}
        self.revisions: dict[str, PendingRevision] = {}
        self.intents: dict[str, ModerationIntent] = {}
        self.fail_on: dict[str, int] = {}
        self.fail_article_reads: set[str] = set()
        self.calls: dict[str, int] = {}
        self._session = cast(AsyncSession, _RecordingSession())

    def fail_next(self, operation: str) -> None:
        self.fail_on[operation] = self.calls.get(operation, 0) + 1

    def _tick(self, operation: str) -> None:
        count = self.calls.get(operation, 0) + 1
        self.calls[operation] = count
        if self.fail_on.get(operation) == count:
            raise TransientStoreError(f"injected failure in {operation}")

    def _tables(self) -> list[dict[str, Any]]:
        return [self.articles, self.versions, self.revisions, self.intents]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        snapshot = [
            {key: (row, _columns(row)) for key, row in table.items()}
            for table in self._tables()
        ]
        try:
            yield
        except Exception:
            for table, saved in zip(self._tables(), snapshot):
                table.clear()
                for key, (row, values) in saved.items():
                    for name, value in values.items():
                        setattr(row, name, value)
                    table[key] = row
            raise

    async def get_article(self, article_id: str) -> Article | None:
        if article_id in self.fail_article_reads:
            raise TransientStoreError(f"read failed for {article_id}")
        return self.articles.get(article_id)

    async def find_article_by_slug(self, slug: str) -> Article | None:
        return next((item for item in self.articles.values() if item.slug == slug), None)

    async def list_articles(self, *, statuses: Iterable[str] | None = None) -> list[Article]:
        wanted = set(statuses) if statuses is not None else None
        return [item for item in self.articles.values() if wanted is None or item.status in wanted]

    async def create_article(self, dto: ArticleCreateDTO) -> Article:
        self._tick("create_article")
        article = Article.create(self._session, dto)
        article.row_version = 1
        self.articles[article.id] = article
        return article

    async def patch_article(self, article: Article, updates: Mapping[str, Any]) -> Article:
        self._tick("patch_article")
        article.patch(self._session, ArticlePatchDTO.from_partial(dict(updates)))
        article.row_version = (article.row_version or 0) + 1
        return article

    async def delete_article(self, article: Article) -> None:
        self._tick("delete_article")
        for table in (self.versions, self.revisions, self.intents):
            for key in [key for key, row in table.items() if row.article_id == article.id]:
                del table[key]
        self.articles.pop(article.id, None)

    async def create_version(self, dto: ArticleVersionCreateDTO) -> ArticleVersion:
        self._tick("create_version")
        version = ArticleVersion.create(self._session, dto)
        self.versions[version.id] = version
        return version

    async def get_version(self, version_id: str) -> ArticleVersion | None:
        return self.versions.get(version_id)

    async def get_version_by_number(self, article_id: str, number: int) -> ArticleVersion | None:
        return next(
            (
                item
                for item in self.versions.values()
                if item.article_id == article_id and item.version_number == number
            ),
            None,
        )

    async def list_versions(self, article_id: str) -> list[ArticleVersion]:
        rows = [item for item in self.versions.values() if item.article_id == article_id]
        return sorted(rows, key=lambda item: item.version_number)

    async def create_revision(self, dto: PendingRevisionCreateDTO) -> PendingRevision:
        self._tick("create_revision")
        revision = PendingRevision.create(self._session, dto)
        self.revisions[revision.id] = revision
        return revision

    async def get_revision(self, revision_id: str) -> PendingRevision | None:
        return self.revisions.get(revision_id)

    async def patch_revision(self, revision: PendingRevision, updates: Mapping[str, Any]) -> PendingRevision:
        self._tick("patch_revision")
        revision.patch(self._session, PendingRevisionPatchDTO.from_partial(dict(updates)))
        return revision

    async def list_revisions(
        self,
        *,
        status: str | None = None,
        article_id: str | None = None,
    ) -> list[PendingRevision]:
        return [
            item
            for item in self.revisions.values()
            if (status is None or item.status == status)
            and (article_id is None or item.article_id == article_id)
        ]

    async def next_revision_sequence(self, article_id: str) -> int:
        sequences = [item.sequence for item in self.revisions.values() if item.article_id == article_id]
        return max(sequences, default=0) + 1

    async def delete_revision(self, revision: PendingRevision) -> None:
        self._tick("delete_revision")
        self.revisions.pop(revision.id, None)

    async def add_intent(self, dto: ModerationIntentCreateDTO) -> ModerationIntent:
        self._tick("add_intent")
        intent = ModerationIntent.create(self._session, dto)
        self.intents[intent.id] = intent
        return intent

    async def list_intents(self) -> list[ModerationIntent]:
        return list(self.intents.values())

    async def delete_intent(self, intent: ModerationIntent) -> None:
        self._tick("delete_intent")
        self.intents.pop(intent.id, None)



@pytest.fixture(autouse=True)
def restore_app_logging() -> Iterator[None]:
    """Undo `setup_logging` (called directly or by the app lifespan) after each test."""
    app_logger = logging.getLogger("app")
    saved = (app_logger.level, list(app_logger.handlers), app_logger.propagate)
    yield
    level, handlers, propagate = saved
    for handler in app_logger.handlers:
        if handler not in handlers:
            app_logger.removeHandler(handler)
    app_logger.setLevel(level)
    app_logger.propagate = propagate


@pytest.fixture
def store() -> InMemoryArticleStore:
    return InMemoryArticleStore()


@pytest.fixture
def transactional_store() -> InMemoryArticleStore:
    return InMemoryArticleStore(supports_transactions=True)


@pytest.fixture
def author() -> Actor:
    return Actor(id="user-1", name="Ada")


@pytest.fixture
def other_author() -> Actor:
    return Actor(id="user-2", name="Grace")


@pytest.fixture
def moderator() -> Actor:
    return Actor(id="mod-1", name="Mod", is_admin=True)
