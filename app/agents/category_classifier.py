"""Category classifier agent for encyclopedia articles."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)

MAX_CATEGORIES = 10
_CONTENT_PREVIEW_CHARS = 12000


class CategoryClassifierInput(BaseModel):
    """Input for category classification."""

    title: str
    content: str


class CategoryTree(BaseModel):
    """Hierarchical categories, broadest first."""

    main: list[str] = Field(default_factory=list)
    intermediate: list[str] = Field(default_factory=list)
    specific: list[str] = Field(default_factory=list)
    administrative: list[str] = Field(default_factory=list)

    def flatten(self) -> list[str]:
        """All category names in hierarchy order, deduplicated, capped at 10."""
        seen: set[str] = set()
        names: list[str] = []
        for name in [*self.main, *self.intermediate, *self.specific, *self.administrative]:
            cleaned = name.strip()
            if cleaned and cleaned.casefold() not in seen:
                seen.add(cleaned.casefold())
                names.append(cleaned)
        return names[:MAX_CATEGORIES]


class CategoryClassifierOutput(BaseModel):
    """Classification result."""

    categories: CategoryTree
    tags: list[str] = Field(default_factory=list)


class CategoryClassifierAgent(BaseAgent[CategoryClassifierInput, CategoryClassifierOutput]):
    """Assigns encyclopedia-style categories and tags to an article."""

    model_tier = "fast"
    temperature = 0.5

    @property
    def system_prompt(self) -> str:
        return """You are an encyclopedia categorization expert.

Generate between 2 and 10 categories (aim for 3-7):
- One broad main category
- 1-2 intermediate categories
- 1-3 specific categories
- 1-2 administrative categories only if needed (e.g. "Articles needing citations")

Naming conventions:
- Plural forms for most categories
- Capitalize the first letter of each word
- Natural language order, no redundant categories

Also return up to 8 short lowercase tags.
"""

    @property
    def output_type(self) -> type[CategoryClassifierOutput]:
        return CategoryClassifierOutput

    def _build_prompt(self, input_data: CategoryClassifierInput) -> str:
        return (
            f"## Title\n{input_data.title}\n\n"
            f"## Article\n{input_data.content[:_CONTENT_PREVIEW_CHARS]}\n\n"
            "Classify this article."
        )
