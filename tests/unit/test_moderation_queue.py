"""Unit tests for moderation queue listings."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.domain.actors import Actor
from app.services.article_lifecycle import ArticleChanges, ArticleLifecycleService
from app.services.moderation_queue import ModerationQueue, QueueSort, sort_items

BODY = "| Info Box |\n|-|\n| **Entry** |\n\nBody."


async def _revision_for(lifecycle: ArticleLifecycleService, title: str, author: Actor, moderator: Actor):
    created = await lifecycle.create_article(author, ArticleChanges(title=title, content=BODY))
    await lifecycle.submit_for_review(created.article.id, author)
    await lifecycle.publish_article(created.article.id, moderator)
    filed = await lifecycle.update_article(author, created.article.id, ArticleChanges(content=f"{title} v2"))
    return created.article, filed.revision


@pytest.mark.asyncio
async def test_pending_items_carry_article_title(store, author: Actor, moderator: Actor) -> None:
    lifecycle = ArticleLifecycleService(store)
    article, revision = await _revision_for(lifecycle, "Ada", author, moderator)

    items = await ModerationQueue(store).list_pending()

    assert [(item.revision.id, item.article_title) for item in items] == [(revision.id, article.title)]


@pytest.mark.asyncio
async def test_sorts_by_normalized_timestamp_and_title(store, author: Actor, moderator: Actor) -> None:
    lifecycle = ArticleLifecycleService(store)
    _a, first = await _revision_for(lifecycle, "beta", author, moderator)
    _b, second = await _revision_for(lifecycle, "Alpha", author, moderator)
    _c, third = await _revision_for(lifecycle, "gamma", author, moderator)
    # Mixed timestamp shapes as older stores return them.
    first.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    second.created_at = "2024-01-03T00:00:00Z"
    third.created_at = {"seconds": int(datetime(2024, 1, 2, tzinfo=timezone.utc).timestamp()), "nanoseconds": 0}
    queue = ModerationQueue(store)

    newest = await queue.list_pending(QueueSort.NEWEST)
    oldest = await queue.list_pending(QueueSort.OLDEST)
    by_title = await queue.list_pending(QueueSort.TITLE_ASC)
    by_title_desc = await queue.list_pending(QueueSort.TITLE_DESC)

    assert [item.revision.id for item in newest] == [second.id, third.id, first.id]
    assert [item.revision.id for item in oldest] == [first.id, third.id, second.id]
    assert [item.article_title for item in by_title] == ["Alpha", "beta", "gamma"]
    assert [item.article_title for item in by_title_desc] == ["gamma", "beta", "Alpha"]


@pytest.mark.asyncio
async def test_failed_parent_fetch_skips_only_that_item(store, author: Actor, moderator: Actor) -> None:
    lifecycle = ArticleLifecycleService(store)
    broken_article, _broken = await _revision_for(lifecycle, "Broken", author, moderator)
    _ok_article, ok = await _revision_for(lifecycle, "Fine", author, moderator)
    store.fail_article_reads.add(broken_article.id)

    items = await ModerationQueue(store).list_pending()

    assert [item.revision.id for item in items] == [ok.id]


@pytest.mark.asyncio
async def test_orphaned_revision_is_skipped(store, author: Actor, moderator: Actor) -> None:
    lifecycle = ArticleLifecycleService(store)
    orphan_article, _orphan = await _revision_for(lifecycle, "Gone", author, moderator)
    _ok_article, ok = await _revision_for(lifecycle, "Here", author, moderator)
    del store.articles[orphan_article.id]

    items = await ModerationQueue(store).list_pending()

    assert [item.revision.id for item in items] == [ok.id]


@pytest.mark.asyncio
async def test_approved_and_published_listings(store, author: Actor, moderator: Actor) -> None:
    lifecycle = ArticleLifecycleService(store)
    article, revision = await _revision_for(lifecycle, "Ada", author, moderator)
    await lifecycle.approve_revision(revision.id, moderator)
    queue = ModerationQueue(store)

    assert await queue.list_pending() == []
    assert [item.revision.id for item in await queue.list_approved()] == [revision.id]
    assert [item.id for item in await queue.list_published_articles()] == [article.id]


def test_unreadable_timestamp_sorts_as_oldest() -> None:
    rows = [("a", "not a date"), ("b", 1_700_000_000), ("c", 1_600_000_000_000)]

    ordered = sort_items(
        rows,
        QueueSort.OLDEST,
        timestamp=lambda row: row[1],
        title=lambda row: row[0],
        entity_id=lambda row: row[0],
    )

    assert [row[0] for row in ordered] == ["a", "c", "b"]
