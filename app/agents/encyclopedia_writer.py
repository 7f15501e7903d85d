"""Encyclopedia writer agent for AI-drafted articles."""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)


class InfoboxResult(BaseModel):
    """Structured key-fact block shown beside the article."""

    title: str
    image: int = Field(default=0, description="Index into the article's images list")
    key_facts: dict[str, str] = Field(default_factory=dict)


class ImageResult(BaseModel):
    """Freely licensed image suggestion."""

    url: str
    description: str = ""
    attribution: str = ""


class EncyclopediaWriterInput(BaseModel):
    """Input for encyclopedia article generation."""

    topic: str
    min_words: int = Field(default=500, ge=1)
    max_words: int = Field(default=2000, ge=1)
    existing_titles: list[str] = Field(default_factory=list)


class EncyclopediaWriterOutput(BaseModel):
    """Generated article draft."""

    title: str
    content: str = Field(description="Markdown body: intro, ## sections, references")
    references: list[str] = Field(default_factory=list)
    infobox: InfoboxResult | None = None
    images: list[ImageResult] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class EncyclopediaWriterAgent(BaseAgent[EncyclopediaWriterInput, EncyclopediaWriterOutput]):
    """Drafts one neutral, cited encyclopedia article for a topic."""

    model_tier = "standard"
    temperature = 0.7

    @property
    def system_prompt(self) -> str:
        return """You are an expert encyclopedia article writer with fact-checking discipline.

Return ONLY structured output matching the schema.

Content format:
1. Start with a concise introduction (no heading).
2. Use ## for main section headings and ### for subsections.
3. Use [1], [2], etc. for citations and end with a References section.
4. No bold text or decorative formatting in the body.
5. Do not put the info box in the content; return it in the infobox field.

Style:
- Academic and neutral tone.
- Clear and concise language.
- Only claims that reliable sources support.

Also return 2-10 categories (plural, title case) and a handful of short tags.
"""

    @property
    def output_type(self) -> type[EncyclopediaWriterOutput]:
        return EncyclopediaWriterOutput

    def _build_prompt(self, input_data: EncyclopediaWriterInput) -> str:
        logger.info(
            "Building encyclopedia writer prompt",
            extra={
                "topic": input_data.topic,
                "min_words": input_data.min_words,
                "max_words": input_data.max_words,
            },
        )

        return (
            f"Write an encyclopedia article about: {input_data.topic}\n\n"
            "## Length\n"
            f"{input_data.min_words}-{input_data.max_words} words\n\n"
            "## Existing Articles (do not duplicate)\n"
            f"{json.dumps(input_data.existing_titles[:50], ensure_ascii=True)}\n\n"
            "Write the article now."
        )
