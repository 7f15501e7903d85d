"""URL slug derivation for article titles."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Awaitable, Callable

from app.core.ids import short_id

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Derive a URL slug from a title.

    NFKD-folds to ASCII, lowercases, collapses every run of characters outside
    `[a-z0-9]` to a single `-` and trims leading and trailing dashes. The
    function is idempotent: `slugify(slugify(t)) == slugify(t)`.
    """
    folded = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", folded.lower()).strip("-")


def fallback_slug(article_id: str) -> str:
    return f"article-{short_id(article_id)}"


async def unique_slug(
    title: str,
    article_id: str,
    is_taken: Callable[[str], Awaitable[bool]],
) -> str:
    """Pick a free slug for an article, suffixing `-2`, `-3`, ... on collision."""
    base = slugify(title) or fallback_slug(article_id)
    if not await is_taken(base):
        return base

    suffix = 2
    while await is_taken(f"{base}-{suffix}"):
        suffix += 1
    return f"{base}-{suffix}"
