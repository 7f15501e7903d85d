"""Editor-side AI help: passage expansion and edit suggestions."""

from __future__ import annotations

import logging
import re

from app.agents.content_expander import ContentExpanderAgent, ContentExpanderInput
from app.agents.edit_advisor import EditAdvisorAgent, EditAdvisorInput
from app.core.exceptions import GenerationError
from app.services.article_lifecycle import EditSuggestions

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 10

_HEADING_RE = re.compile(r"^[ \t]{0,3}(#{1,6})[ \t]+(.+?)[ \t#]*$", re.MULTILINE)


def markdown_headings(content: str) -> list[str]:
    """Heading lines as `## Text`, in document order."""
    return [f"{hashes} {text}" for hashes, text in _HEADING_RE.findall(content)]


def _keeps_headings(original: str, expanded: str) -> bool:
    remaining = iter(markdown_headings(expanded))
    return all(heading in remaining for heading in markdown_headings(original))


class AgentWritingAssistant:
    """`WritingAssistant` backed by the content expander and edit advisor agents."""

    def __init__(
        self,
        expander: ContentExpanderAgent | None = None,
        advisor: EditAdvisorAgent | None = None,
    ) -> None:
        self.expander = expander or ContentExpanderAgent()
        self.advisor = advisor or EditAdvisorAgent()

    async def expand(self, *, title: str, selected_content: str, context: str) -> str:
        output = await self.expander.run(
            ContentExpanderInput(title=title, selected_content=selected_content, context=context)
        )
        expanded = (output.expanded_content or "").strip()
        if not expanded:
            raise GenerationError(title, "model returned an empty expansion")
        if not _keeps_headings(selected_content, expanded):
            logger.warning(
                "Expansion dropped headings",
                extra={"title": title, "headings": len(markdown_headings(selected_content))},
            )
            raise GenerationError(title, "expansion did not keep the selected headings")
        return expanded

    async def suggest_edits(self, *, title: str, content: str) -> EditSuggestions:
        output = await self.advisor.run(EditAdvisorInput(title=title, content=content))
        suggestions = [item.strip() for item in output.suggestions if item and item.strip()]
        improved = (output.improved_content or "").strip() or None
        if improved == content.strip():
            improved = None
        return EditSuggestions(suggestions=suggestions[:MAX_SUGGESTIONS], improved_content=improved)
