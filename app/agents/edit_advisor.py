"""Edit advisor agent that reviews an article and proposes improvements."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

_CONTENT_PREVIEW_CHARS = 12000


class EditAdvisorInput(BaseModel):
    title: str
    content: str


class EditAdvisorOutput(BaseModel):
    """Review notes plus an optional rewritten body."""

    suggestions: list[str] = Field(default_factory=list)
    improved_content: str | None = Field(
        default=None,
        description="Full revised markdown body, or null when no rewrite is warranted",
    )


class EditAdvisorAgent(BaseAgent[EditAdvisorInput, EditAdvisorOutput]):
    """Suggests concrete edits for clarity, neutrality and sourcing."""

    model_tier = "fast"
    temperature = 0.4

    @property
    def system_prompt(self) -> str:
        return """You are a senior encyclopedia editor reviewing an article.

Return up to 10 short, actionable suggestions. Look for:
- unclear or awkward sentences
- non-neutral wording
- claims that need a citation
- missing sections a reader would expect
- structural problems in headings

Only return improved_content when a rewrite clearly helps. Keep the info box,
headings and citations of the original when you rewrite.
"""

    @property
    def output_type(self) -> type[EditAdvisorOutput]:
        return EditAdvisorOutput

    def _build_prompt(self, input_data: EditAdvisorInput) -> str:
        return (
            f"## Title\n{input_data.title}\n\n"
            f"## Article\n{input_data.content[:_CONTENT_PREVIEW_CHARS]}\n\n"
            "Review this article."
        )
