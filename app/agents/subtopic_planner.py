"""Subtopic planner agent that splits a broad topic into article titles."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)


class SubtopicPlannerInput(BaseModel):
    """Input for subtopic planning."""

    topic: str
    count: int = Field(default=10, ge=1)


class SubtopicPlannerOutput(BaseModel):
    subtopics: list[str] = Field(default_factory=list)


class SubtopicPlannerAgent(BaseAgent[SubtopicPlannerInput, SubtopicPlannerOutput]):
    """Turns a broad topic into specific, article-sized subjects."""

    model_tier = "fast"
    temperature = 0.8

    @property
    def system_prompt(self) -> str:
        return """You plan encyclopedia coverage for a broad topic.

Return specific subjects that each deserve their own article.

Naming rules:
- People: full names only (e.g. "Ada Lovelace", not "Lovelace's work").
- Events: their official or most common name.
- Concepts: concise noun phrases.
- No duplicates, no numbering, no explanations.
"""

    @property
    def output_type(self) -> type[SubtopicPlannerOutput]:
        return SubtopicPlannerOutput

    def _build_prompt(self, input_data: SubtopicPlannerInput) -> str:
        logger.info(
            "Building subtopic planner prompt",
            extra={"topic": input_data.topic, "count": input_data.count},
        )
        return f"List {input_data.count} subjects within the topic: {input_data.topic}"
