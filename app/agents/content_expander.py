"""Content expander agent for growing a selected passage of an article."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)

_CONTEXT_PREVIEW_CHARS = 8000


class ContentExpanderInput(BaseModel):
    """Input for passage expansion."""

    title: str
    selected_content: str
    context: str = ""


class ContentExpanderOutput(BaseModel):
    """Expanded passage."""

    expanded_content: str = Field(description="Markdown replacement for the selected passage")


class ContentExpanderAgent(BaseAgent[ContentExpanderInput, ContentExpanderOutput]):
    """Rewrites a selected passage with more detail in the same structure."""

    model_tier = "standard"
    temperature = 0.7

    @property
    def system_prompt(self) -> str:
        return """You are an encyclopedia editor expanding one passage of an article.

Rules:
- Keep every markdown heading from the selection, unchanged and in order.
- Add detail, context and explanation under the existing headings.
- Write flowing paragraphs; no bullet lists.
- Formal, neutral, encyclopedic tone.
- Return only the expanded passage, not the rest of the article.
"""

    @property
    def output_type(self) -> type[ContentExpanderOutput]:
        return ContentExpanderOutput

    def _build_prompt(self, input_data: ContentExpanderInput) -> str:
        logger.info(
            "Building content expander prompt",
            extra={"title": input_data.title, "selection_length": len(input_data.selected_content)},
        )
        return (
            f"## Article\n{input_data.title}\n\n"
            f"## Surrounding Context\n{input_data.context[:_CONTEXT_PREVIEW_CHARS]}\n\n"
            f"## Selected Passage\n{input_data.selected_content}\n\n"
            "Expand the selected passage."
        )
