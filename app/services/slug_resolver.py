"""Slug to article resolution with lazy slug back-fill."""

from __future__ import annotations

import logging

from app.core.exceptions import ArticleNotFoundError
from app.domain.slugs import slugify, unique_slug
from app.domain.timestamps import utc_now
from app.models.article import Article
from app.repositories.article_store import ArticleStore

logger = logging.getLogger(__name__)


class SlugResolver:
    """Resolves public slugs and assigns slugs to articles created without one."""

    def __init__(self, store: ArticleStore) -> None:
        self.store = store

    async def _is_taken(self, slug: str) -> bool:
        return await self.store.find_article_by_slug(slug) is not None

    async def ensure_slug(self, article: Article) -> str:
        """Return the article's slug, deriving and persisting one if missing."""
        if article.slug:
            return article.slug

        slug = await unique_slug(article.title, article.id, self._is_taken)
        await self.store.patch_article(article, {"slug": slug, "updated_at": utc_now()})
        logger.info("Article slug back-filled", extra={"article_id": article.id, "slug": slug})
        return slug

    async def resolve_article_id(self, slug: str) -> str:
        article = await self.resolve(slug)
        return article.id

    async def resolve(self, slug: str) -> Article:
        """Find an article by slug.

        Articles stored before slugs existed have none, so an exact miss
        falls back to matching derived slugs and back-fills the winner.
        """
        normalized = slugify(slug)
        if not normalized:
            raise ArticleNotFoundError(slug)

        article = await self.store.find_article_by_slug(normalized)
        if article is not None:
            return article

        for candidate in await self.store.list_articles():
            if candidate.slug is None and (slugify(candidate.title) or None) == normalized:
                await self.ensure_slug(candidate)
                return candidate

        raise ArticleNotFoundError(slug)
