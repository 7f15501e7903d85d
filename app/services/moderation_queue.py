"""Read-side moderation queue over revisions and published articles."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from app.core.exceptions import PlexipediaError
from app.domain.state_machine import ArticleStatus, RevisionStatus
from app.domain.timestamps import to_epoch_seconds
from app.models.article import Article, PendingRevision
from app.repositories.article_store import ArticleStore

logger = logging.getLogger(__name__)

_ItemT = TypeVar("_ItemT")


class QueueSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"


@dataclass(slots=True)
class QueueItem:
    """A revision joined with its parent article's current title."""

    revision: PendingRevision
    article_title: str

    @property
    def created_at(self) -> Any:
        return self.revision.created_at


def _timestamp_key(value: Any, *, entity_id: str) -> float:
    try:
        return to_epoch_seconds(value)
    except (TypeError, ValueError):
        logger.warning(
            "Unreadable timestamp in moderation queue; sorting as oldest",
            extra={"entity_id": entity_id, "value": repr(value)},
        )
        return 0.0


def sort_items(
    items: Sequence[_ItemT],
    sort: QueueSort,
    *,
    timestamp: Callable[[_ItemT], Any],
    title: Callable[[_ItemT], str],
    entity_id: Callable[[_ItemT], str],
) -> list[_ItemT]:
    """Sort queue rows by normalized timestamp or case-insensitive title."""
    if sort in (QueueSort.TITLE_ASC, QueueSort.TITLE_DESC):
        return sorted(
            items,
            key=lambda item: title(item).casefold(),
            reverse=sort == QueueSort.TITLE_DESC,
        )
    return sorted(
        items,
        key=lambda item: _timestamp_key(timestamp(item), entity_id=entity_id(item)),
        reverse=sort == QueueSort.NEWEST,
    )


class ModerationQueue:
    """Best-effort listings for reviewer triage.

    A revision whose parent article cannot be fetched, or no longer exists,
    is logged and left out instead of failing the whole listing.
    """

    def __init__(self, store: ArticleStore) -> None:
        self.store = store

    async def list_pending(self, sort: QueueSort = QueueSort.NEWEST) -> list[QueueItem]:
        return await self._list_revisions(RevisionStatus.PENDING, sort)

    async def list_approved(self, sort: QueueSort = QueueSort.NEWEST) -> list[QueueItem]:
        return await self._list_revisions(RevisionStatus.APPROVED, sort)

    async def list_published_articles(self, sort: QueueSort = QueueSort.NEWEST) -> list[Article]:
        articles = await self.store.list_articles(statuses=[ArticleStatus.PUBLISHED.value])
        return sort_items(
            articles,
            sort,
            timestamp=lambda article: article.updated_at,
            title=lambda article: article.title,
            entity_id=lambda article: article.id,
        )

    async def _list_revisions(self, status: RevisionStatus, sort: QueueSort) -> list[QueueItem]:
        revisions = await self.store.list_revisions(status=status.value)
        items: list[QueueItem] = []
        titles: dict[str, str] = {}

        for revision in revisions:
            title = titles.get(revision.article_id)
            if title is None:
                try:
                    article = await self.store.get_article(revision.article_id)
                except PlexipediaError as exc:
                    logger.warning(
                        "Skipping revision: parent article fetch failed",
                        extra={
                            "revision_id": revision.id,
                            "article_id": revision.article_id,
                            "error": exc.message,
                        },
                    )
                    continue
                if article is None:
                    logger.warning(
                        "Skipping orphaned revision",
                        extra={"revision_id": revision.id, "article_id": revision.article_id},
                    )
                    continue
                title = article.title
                titles[revision.article_id] = title
            items.append(QueueItem(revision=revision, article_title=title))

        return sort_items(
            items,
            sort,
            timestamp=lambda item: item.created_at,
            title=lambda item: item.article_title,
            entity_id=lambda item: item.revision.id,
        )
