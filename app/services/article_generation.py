"""Generation backend adapter: turns agent output into article drafts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

from app.agents.category_classifier import CategoryClassifierAgent, CategoryClassifierInput
from app.agents.duplicate_checker import DuplicateCheckerAgent, DuplicateCheckerInput, ExistingArticleRef
from app.agents.encyclopedia_writer import EncyclopediaWriterAgent, EncyclopediaWriterInput
from app.agents.subtopic_planner import SubtopicPlannerAgent, SubtopicPlannerInput
from app.core.exceptions import GenerationError
from app.core.ids import generate_cuid
from app.domain.infobox import format_infobox_markdown, has_infobox
from app.services.article_lifecycle import ArticleChanges, CategorySuggestion

logger = logging.getLogger(__name__)

AI_VERSION_SUMMARY = "Initial version generated by AI"


def named_refs(names: list[str]) -> list[dict[str, Any]]:
    """Build `{id, name}` category/tag refs from plain names."""
    refs: list[dict[str, Any]] = []
    seen: set[str] = set()
    for name in names:
        cleaned = name.strip()
        if not cleaned or cleaned.casefold() in seen:
            continue
        seen.add(cleaned.casefold())
        refs.append({"id": generate_cuid(), "name": cleaned})
    return refs


def _strip_leading_heading(content: str) -> str:
    """Drop a leading `# Title` line and blank lines the model may prepend."""
    lines = content.split("\n")
    while lines and (not lines[0].strip() or lines[0].strip().startswith("# ")):
        lines.pop(0)
    return "\n".join(lines).strip()


@dataclass(slots=True)
class GeneratedArticle:
    """Draft article returned by a generation backend."""

    title: str
    content: str
    categories: list[dict[str, Any]] = field(default_factory=list)
    tags: list[dict[str, Any]] = field(default_factory=list)
    images: list[dict[str, Any]] = field(default_factory=list)
    infobox: dict[str, Any] | None = None

    def to_changes(self) -> ArticleChanges:
        return ArticleChanges(
            title=self.title,
            content=self.content,
            categories=self.categories,
            tags=self.tags,
            images=self.images,
            infobox=self.infobox,
        )


class ArticleGenerator(Protocol):
    async def generate(
        self,
        topic: str,
        *,
        min_words: int,
        max_words: int,
        existing_titles: list[str] | None = None,
    ) -> GeneratedArticle: ...


class AgentArticleGenerator:
    """`ArticleGenerator` backed by the encyclopedia writer agent."""

    def __init__(self, agent: EncyclopediaWriterAgent | None = None) -> None:
        self.agent = agent or EncyclopediaWriterAgent()

    async def generate(
        self,
        topic: str,
        *,
        min_words: int,
        max_words: int,
        existing_titles: list[str] | None = None,
    ) -> GeneratedArticle:
        output = await self.agent.run(
            EncyclopediaWriterInput(
                topic=topic,
                min_words=min_words,
                max_words=max_words,
                existing_titles=list(existing_titles or []),
            )
        )

        body = _strip_leading_heading(output.content or "")
        if not body:
            raise GenerationError(topic, "model returned empty content")

        images = [image.model_dump() for image in output.images]
        infobox = output.infobox.model_dump() if output.infobox else None
        if infobox and not has_infobox(body):
            body = f"{format_infobox_markdown(infobox, images)}{body}"

        generated = GeneratedArticle(
            title=(output.title or topic).strip() or topic,
            content=body,
            categories=named_refs(output.categories),
            tags=named_refs(output.tags),
            images=images,
            infobox=infobox,
        )
        logger.info(
            "Article draft generated",
            extra={
                "topic": topic,
                "title": generated.title,
                "content_length": len(body),
                "categories": len(generated.categories),
            },
        )
        return generated


class AgentCategorySuggester:
    """`CategorySuggester` backed by the category classifier agent."""

    def __init__(self, agent: CategoryClassifierAgent | None = None) -> None:
        self.agent = agent or CategoryClassifierAgent()

    async def suggest(self, *, title: str, content: str) -> CategorySuggestion:
        output = await self.agent.run(CategoryClassifierInput(title=title, content=content))
        categories = named_refs(output.categories.flatten())
        if not categories:
            raise GenerationError(title, "classifier returned no categories")
        return CategorySuggestion(categories=categories, tags=named_refs(output.tags))


@dataclass(slots=True)
class ExistingArticle:
    """Article already in the encyclopedia, as seen by the duplicate check."""

    id: str
    title: str
    excerpt: str = ""


@dataclass(slots=True)
class DuplicateVerdict:
    is_duplicate: bool
    similar_ids: list[str] = field(default_factory=list)
    reason: str = ""


class DuplicateChecker(Protocol):
    async def check(self, *, title: str, content: str, existing: list[ExistingArticle]) -> DuplicateVerdict: ...


class SubtopicPlanner(Protocol):
    async def plan(self, topic: str, count: int) -> list[str]: ...


def _title_key(title: str) -> str:
    return " ".join(title.casefold().split())


def _words(text: str) -> set[str]:
    return {word for word in re.findall(r"\w+", text.casefold()) if len(word) > 2}


class AgentDuplicateChecker:
    """`DuplicateChecker` backed by the duplicate checker agent.

    An exact title match is a duplicate without asking the model. Otherwise
    the existing articles sharing the most title words with the candidate
    are sent for scoring.
    """

    def __init__(
        self,
        agent: DuplicateCheckerAgent | None = None,
        *,
        max_candidates: int = 50,
        excerpt_chars: int = 500,
    ) -> None:
        self.agent = agent or DuplicateCheckerAgent()
        self.max_candidates = max_candidates
        self.excerpt_chars = excerpt_chars

    def _candidates(self, title: str, existing: list[ExistingArticle]) -> list[ExistingArticle]:
        title_words = _words(title)
        ranked = sorted(
            existing,
            key=lambda item: len(title_words & _words(item.title)),
            reverse=True,
        )
        return ranked[: self.max_candidates]

    async def check(self, *, title: str, content: str, existing: list[ExistingArticle]) -> DuplicateVerdict:
        if not existing:
            return DuplicateVerdict(is_duplicate=False, reason="no existing articles")

        key = _title_key(title)
        same_title = [item.id for item in existing if _title_key(item.title) == key]
        if same_title:
            return DuplicateVerdict(is_duplicate=True, similar_ids=same_title, reason="same title")

        candidates = self._candidates(title, existing)
        output = await self.agent.run(
            DuplicateCheckerInput(
                title=title,
                content=content,
                existing=[
                    ExistingArticleRef(id=item.id, title=item.title, excerpt=item.excerpt[: self.excerpt_chars])
                    for item in candidates
                ],
            )
        )
        known_ids = {item.id for item in candidates}
        similar_ids = [item.id for item in output.similar_articles if item.id in known_ids]
        verdict = DuplicateVerdict(
            is_duplicate=output.is_duplicate,
            similar_ids=similar_ids,
            reason=output.reason.strip() or ("similar article exists" if output.is_duplicate else ""),
        )
        logger.info(
            "Duplicate check finished",
            extra={
                "title": title,
                "candidates": len(candidates),
                "is_duplicate": verdict.is_duplicate,
                "similar": len(similar_ids),
            },
        )
        return verdict


class AgentSubtopicPlanner:
    """`SubtopicPlanner` backed by the subtopic planner agent."""

    def __init__(self, agent: SubtopicPlannerAgent | None = None) -> None:
        self.agent = agent or SubtopicPlannerAgent()

    async def plan(self, topic: str, count: int) -> list[str]:
        output = await self.agent.run(SubtopicPlannerInput(topic=topic, count=count))
        subtopics: list[str] = []
        seen: set[str] = set()
        for name in output.subtopics:
            cleaned = name.strip()
            if cleaned and _title_key(cleaned) not in seen:
                seen.add(_title_key(cleaned))
                subtopics.append(cleaned)
        return subtopics[:count]
