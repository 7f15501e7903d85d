"""Tests for passage expansion and edit suggestions."""

from __future__ import annotations

import pytest

from app.agents.content_expander import ContentExpanderInput, ContentExpanderOutput
from app.agents.edit_advisor import EditAdvisorOutput
from app.core.exceptions import GenerationError
from app.services.writing_assistant import AgentWritingAssistant, markdown_headings


class _FakeAgent:
    def __init__(self, output: object) -> None:
        self.output = output
        self.calls: list[object] = []

    async def run(self, input_data: object) -> object:
        self.calls.append(input_data)
        return self.output


def _assistant(*, expander: object = None, advisor: object = None) -> AgentWritingAssistant:
    return AgentWritingAssistant(
        expander=expander or _FakeAgent(ContentExpanderOutput(expanded_content="unused")),
        advisor=advisor or _FakeAgent(EditAdvisorOutput()),
    )


def test_markdown_headings_in_order() -> None:
    content = "Intro.\n\n## Early life\nText.\n### Family ###\nMore.\n#hashtag"

    assert markdown_headings(content) == ["## Early life", "### Family"]


@pytest.mark.asyncio
async def test_expansion_keeps_selected_headings() -> None:
    expander = _FakeAgent(
        ContentExpanderOutput(expanded_content="## Early life\nAda was born in London in 1815.\n\nShe was tutored.")
    )

    expanded = await _assistant(expander=expander).expand(
        title="Ada Lovelace",
        selected_content="## Early life\nAda was born in 1815.",
        context="Whole article.",
    )

    assert expanded.startswith("## Early life")
    call = expander.calls[0]
    assert isinstance(call, ContentExpanderInput)
    assert call.context == "Whole article."


@pytest.mark.asyncio
async def test_expansion_that_drops_a_heading_is_rejected() -> None:
    expander = _FakeAgent(ContentExpanderOutput(expanded_content="Ada was born in London in 1815."))

    with pytest.raises(GenerationError):
        await _assistant(expander=expander).expand(
            title="Ada Lovelace",
            selected_content="## Early life\nAda was born in 1815.",
            context="",
        )


@pytest.mark.asyncio
async def test_empty_expansion_is_rejected() -> None:
    expander = _FakeAgent(ContentExpanderOutput(expanded_content="   "))

    with pytest.raises(GenerationError):
        await _assistant(expander=expander).expand(title="Ada", selected_content="Ada.", context="")


@pytest.mark.asyncio
async def test_suggestions_are_cleaned_and_unchanged_rewrite_dropped() -> None:
    advisor = _FakeAgent(
        EditAdvisorOutput(
            suggestions=[" Cite the birth date. ", "", "Use neutral wording."],
            improved_content="Ada was a mathematician.\n",
        )
    )

    result = await _assistant(advisor=advisor).suggest_edits(title="Ada", content="Ada was a mathematician.")

    assert result.suggestions == ["Cite the birth date.", "Use neutral wording."]
    assert result.improved_content is None


@pytest.mark.asyncio
async def test_suggestions_keep_a_real_rewrite() -> None:
    advisor = _FakeAgent(EditAdvisorOutput(suggestions=["Expand."], improved_content="Ada was a mathematician and writer."))

    result = await _assistant(advisor=advisor).suggest_edits(title="Ada", content="Ada was a mathematician.")

    assert result.improved_content == "Ada was a mathematician and writer."
