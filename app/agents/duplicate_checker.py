"""Duplicate checker agent comparing a draft with existing articles."""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)

_CONTENT_PREVIEW_CHARS = 4000


class ExistingArticleRef(BaseModel):
    id: str
    title: str
    excerpt: str = ""


class DuplicateCheckerInput(BaseModel):
    """Input for duplicate detection."""

    title: str
    content: str = ""
    existing: list[ExistingArticleRef] = Field(default_factory=list)


class SimilarArticle(BaseModel):
    id: str
    title: str
    similarity: int = Field(ge=0, le=100, description="0-100, title 40% and content 60%")


class DuplicateCheckerOutput(BaseModel):
    """Duplicate verdict."""

    is_duplicate: bool
    similar_articles: list[SimilarArticle] = Field(default_factory=list)
    reason: str = ""


class DuplicateCheckerAgent(BaseAgent[DuplicateCheckerInput, DuplicateCheckerOutput]):
    """Decides whether a draft covers the same subject as an existing article."""

    model_tier = "fast"
    temperature = 0.2

    @property
    def system_prompt(self) -> str:
        return """You detect duplicate encyclopedia articles.

Score each existing article from 0 to 100 for similarity with the candidate.
Weigh the title at 40% and the content at 60%.

A candidate is a duplicate when it covers the same subject as an existing
article, even under a different title. Related but distinct subjects are not
duplicates. Only list existing articles scoring 50 or more, using their ids
exactly as given, and explain the verdict in one sentence.
"""

    @property
    def output_type(self) -> type[DuplicateCheckerOutput]:
        return DuplicateCheckerOutput

    def _build_prompt(self, input_data: DuplicateCheckerInput) -> str:
        logger.info(
            "Building duplicate checker prompt",
            extra={"title": input_data.title, "existing": len(input_data.existing)},
        )
        existing = [item.model_dump() for item in input_data.existing]
        return (
            f"## Candidate Title\n{input_data.title}\n\n"
            f"## Candidate Content\n{input_data.content[:_CONTENT_PREVIEW_CHARS] or '(not written yet)'}\n\n"
            f"## Existing Articles\n{json.dumps(existing, ensure_ascii=True)}\n\n"
            "Is the candidate a duplicate?"
        )
