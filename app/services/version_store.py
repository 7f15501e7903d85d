"""Append-only version history for articles."""

from __future__ import annotations

import logging
from typing import Any

from app.core.exceptions import VersionNotFoundError
from app.core.ids import generate_cuid
from app.domain.actors import Actor
from app.domain.timestamps import format_restore_timestamp, utc_now
from app.models.article import Article, ArticleVersion
from app.models.generated_dtos import ArticleVersionCreateDTO
from app.repositories.article_store import ArticleStore

logger = logging.getLogger(__name__)


class VersionStore:
    """Creates immutable versions and moves an article's current pointer."""

    def __init__(self, store: ArticleStore) -> None:
        self.store = store

    async def append_version(
        self,
        article: Article,
        content: str,
        author: Actor,
        change_summary: str,
        *,
        title: str | None = None,
        extra_updates: dict[str, Any] | None = None,
    ) -> ArticleVersion:
        """Snapshot `content` as the next version and make it current.

        `extra_updates` are applied to the article in the same patch, so a
        status change lands together with the new version pointer.
        """
        version = await self.create_snapshot(article, content, author, change_summary, title=title)
        await self.adopt(article, version, extra_updates=extra_updates)
        return version

    async def unadopted_versions(self, article: Article) -> list[ArticleVersion]:
        """Versions numbered past the article's pointer, oldest first.

        They exist when a snapshot was written but moving the pointer failed.
        """
        latest = article.latest_version_number or 0
        versions = await self.store.list_versions(article.id)
        return sorted(
            (item for item in versions if item.version_number > latest),
            key=lambda item: item.version_number,
        )

    async def create_snapshot(
        self,
        article: Article,
        content: str,
        author: Actor,
        change_summary: str,
        *,
        title: str | None = None,
    ) -> ArticleVersion:
        """Write a version without moving the article's pointer to it."""
        numbers = [item.version_number for item in await self.unadopted_versions(article)]
        number = max([article.latest_version_number or 0, *numbers]) + 1
        return await self.store.create_version(
            ArticleVersionCreateDTO(
                id=generate_cuid(),
                article_id=article.id,
                version_number=number,
                title=title if title is not None else article.title,
                content=content,
                author=author.name,
                author_id=author.id,
                changes=change_summary,
                created_at=utc_now(),
            )
        )

    async def adopt(
        self,
        article: Article,
        version: ArticleVersion,
        *,
        extra_updates: dict[str, Any] | None = None,
    ) -> Article:
        """Make `version` the article's live content."""
        updates: dict[str, Any] = {
            "content": version.content,
            "current_version_id": version.id,
            "latest_version_number": max(article.latest_version_number or 0, version.version_number),
            "updated_at": utc_now(),
        }
        if version.title is not None:
            updates["title"] = version.title
        updates.update(extra_updates or {})
        await self.store.patch_article(article, updates)

        logger.info(
            "Article version appended",
            extra={
                "article_id": article.id,
                "version_id": version.id,
                "version_number": version.version_number,
                "author_id": version.author_id,
            },
        )
        return article

    async def get_version(self, article_id: str, version_id: str) -> ArticleVersion:
        """Look up a version that belongs to `article_id`."""
        version = await self.store.get_version(version_id)
        if version is None or version.article_id != article_id:
            raise VersionNotFoundError(article_id, version_id)
        return version

    async def get_version_by_number(self, article_id: str, number: int) -> ArticleVersion:
        version = await self.store.get_version_by_number(article_id, number)
        if version is None:
            raise VersionNotFoundError(article_id, number)
        return version

    async def list_versions(self, article_id: str) -> list[ArticleVersion]:
        """Versions of an article, newest first."""
        versions = await self.store.list_versions(article_id)
        return sorted(versions, key=lambda item: item.version_number, reverse=True)

    async def restore(self, article: Article, version_id: str, actor: Actor) -> ArticleVersion:
        """Re-apply an earlier version's content as a new version.

        History only grows; restoring the current version is allowed and
        appends a redundant copy.
        """
        source = await self.get_version(article.id, version_id)
        summary = f"Restored version from {format_restore_timestamp(source.created_at)}"
        restored = await self.append_version(
            article,
            source.content,
            actor,
            summary,
            title=source.title or article.title,
        )
        logger.info(
            "Article version restored",
            extra={
                "article_id": article.id,
                "source_version_id": source.id,
                "version_id": restored.id,
            },
        )
        return restored
