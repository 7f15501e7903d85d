"""Tests for turning agent output into article drafts."""

from __future__ import annotations

import pytest

from app.agents.category_classifier import CategoryClassifierOutput, CategoryTree
from app.agents.duplicate_checker import DuplicateCheckerInput, DuplicateCheckerOutput, SimilarArticle
from app.agents.encyclopedia_writer import (
    EncyclopediaWriterInput,
    EncyclopediaWriterOutput,
    ImageResult,
    InfoboxResult,
)
from app.agents.subtopic_planner import SubtopicPlannerOutput
from app.core.exceptions import GenerationError
from app.domain.infobox import has_infobox
from app.services.article_generation import (
    AgentArticleGenerator,
    AgentCategorySuggester,
    AgentDuplicateChecker,
    AgentSubtopicPlanner,
    ExistingArticle,
    named_refs,
)


class _FakeWriterAgent:
    def __init__(self, output: EncyclopediaWriterOutput) -> None:
        self.output = output
        self.calls: list[EncyclopediaWriterInput] = []

    async def run(self, input_data: EncyclopediaWriterInput) -> EncyclopediaWriterOutput:
        self.calls.append(input_data)
        return self.output


class _FakeClassifierAgent:
    def __init__(self, output: CategoryClassifierOutput) -> None:
        self.output = output

    async def run(self, _input_data: object) -> CategoryClassifierOutput:
        return self.output


def test_named_refs_dedupes_case_insensitively() -> None:
    refs = named_refs(["Mathematicians", " mathematicians ", "", "Poets"])

    assert [ref["name"] for ref in refs] == ["Mathematicians", "Poets"]
    assert all(ref["id"] for ref in refs)


@pytest.mark.asyncio
async def test_generator_prepends_infobox_and_strips_heading() -> None:
    agent = _FakeWriterAgent(
        EncyclopediaWriterOutput(
            title="Ada Lovelace",
            content="# Ada Lovelace\n\nAda was a mathematician.",
            infobox=InfoboxResult(title="Ada Lovelace", image=0, key_facts={"Born": "1815"}),
            images=[ImageResult(url="https://img.example/ada.png", description="Portrait")],
            categories=["Mathematicians", "Computing pioneers"],
            tags=["analytical engine"],
        )
    )

    generated = await AgentArticleGenerator(agent).generate(
        "ada lovelace",
        min_words=500,
        max_words=900,
        existing_titles=["Charles Babbage"],
    )

    assert agent.calls[0].existing_titles == ["Charles Babbage"]
    assert agent.calls[0].max_words == 900
    assert generated.title == "Ada Lovelace"
    assert has_infobox(generated.content)
    assert generated.content.endswith("Ada was a mathematician.")
    assert "# Ada Lovelace" not in generated.content
    assert [ref["name"] for ref in generated.categories] == ["Mathematicians", "Computing pioneers"]
    assert generated.images[0]["url"] == "https://img.example/ada.png"


@pytest.mark.asyncio
async def test_generator_rejects_empty_content() -> None:
    agent = _FakeWriterAgent(EncyclopediaWriterOutput(title="Empty", content="# Empty\n\n"))

    with pytest.raises(GenerationError):
        await AgentArticleGenerator(agent).generate("empty", min_words=500, max_words=900)


@pytest.mark.asyncio
async def test_generator_falls_back_to_topic_title() -> None:
    agent = _FakeWriterAgent(EncyclopediaWriterOutput(title="  ", content="Body."))

    generated = await AgentArticleGenerator(agent).generate("Turing", min_words=500, max_words=900)

    assert generated.title == "Turing"
    assert generated.infobox is None


@pytest.mark.asyncio
async def test_category_suggester_flattens_tree() -> None:
    agent = _FakeClassifierAgent(
        CategoryClassifierOutput(
            categories=CategoryTree(main=["People"], specific=["Mathematicians", "people"]),
            tags=["maths"],
        )
    )

    suggestion = await AgentCategorySuggester(agent).suggest(title="Ada", content="Body")

    assert [ref["name"] for ref in suggestion.categories] == ["People", "Mathematicians"]
    assert [ref["name"] for ref in suggestion.tags] == ["maths"]


@pytest.mark.asyncio
async def test_category_suggester_requires_categories() -> None:
    agent = _FakeClassifierAgent(CategoryClassifierOutput(categories=CategoryTree()))

    with pytest.raises(GenerationError):
        await AgentCategorySuggester(agent).suggest(title="Ada", content="Body")


class _FakeAgent:
    def __init__(self, output: object) -> None:
        self.output = output
        self.calls: list[object] = []

    async def run(self, input_data: object) -> object:
        self.calls.append(input_data)
        return self.output


EXISTING = [
    ExistingArticle(id="a1", title="Ada Lovelace", excerpt="Ada was a mathematician."),
    ExistingArticle(id="a2", title="Charles Babbage", excerpt="Babbage designed engines."),
    ExistingArticle(id="a3", title="Analytical Engine", excerpt="A proposed computer."),
]


@pytest.mark.asyncio
async def test_duplicate_check_without_existing_articles_skips_the_model() -> None:
    agent = _FakeAgent(DuplicateCheckerOutput(is_duplicate=True))

    verdict = await AgentDuplicateChecker(agent).check(title="Ada", content="Body", existing=[])

    assert verdict.is_duplicate is False
    assert agent.calls == []


@pytest.mark.asyncio
async def test_same_title_is_a_duplicate_without_the_model() -> None:
    agent = _FakeAgent(DuplicateCheckerOutput(is_duplicate=False))

    verdict = await AgentDuplicateChecker(agent).check(title="  ada   lovelace", content="Body", existing=EXISTING)

    assert verdict.is_duplicate is True
    assert verdict.similar_ids == ["a1"]
    assert agent.calls == []


@pytest.mark.asyncio
async def test_duplicate_check_sends_closest_titles_and_drops_unknown_ids() -> None:
    agent = _FakeAgent(
        DuplicateCheckerOutput(
            is_duplicate=True,
            similar_articles=[
                SimilarArticle(id="a3", title="Analytical Engine", similarity=85),
                SimilarArticle(id="made-up", title="Difference Engine", similarity=70),
            ],
            reason="Same machine.",
        )
    )

    verdict = await AgentDuplicateChecker(agent, max_candidates=1).check(
        title="The Analytical Engine of Babbage",
        content="A general-purpose computer design.",
        existing=EXISTING,
    )

    call = agent.calls[0]
    assert isinstance(call, DuplicateCheckerInput)
    assert [item.id for item in call.existing] == ["a3"]
    assert verdict.is_duplicate is True
    assert verdict.similar_ids == ["a3"]
    assert verdict.reason == "Same machine."


@pytest.mark.asyncio
async def test_subtopic_planner_dedupes_and_caps() -> None:
    agent = _FakeAgent(
        SubtopicPlannerOutput(subtopics=["Ada Lovelace", " ada lovelace ", "", "Charles Babbage", "Alan Turing"])
    )

    subtopics = await AgentSubtopicPlanner(agent).plan("computing pioneers", 2)

    assert subtopics == ["Ada Lovelace", "Charles Babbage"]
