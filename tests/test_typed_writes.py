"""Tests for typed write layer."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import cast

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.article import Article, ArticleVersion, ModerationIntent, PendingRevision
from app.models.generated_dtos import (
    ArticleCreateDTO,
    ArticlePatchDTO,
    ArticleVersionPatchDTO,
    PendingRevisionPatchDTO,
)
from app.persistence.typed import patch as typed_patch
from app.persistence.typed.errors import (
    AppendOnlyRowError,
    InvalidPatchFieldError,
    ModelMismatchError,
)
from scripts.check_typed_writes import find_violations


class FakeAsyncSession:
    """Minimal async session stub for adapter tests."""

    def __init__(self) -> None:
        self.added: list[object] = []
        self.deleted: list[object] = []
        self.fetched: dict[tuple[type[object], str], object] = {}

    def add(self, instance: object) -> None:
        self.added.append(instance)

    async def delete(self, instance: object) -> None:
        self.deleted.append(instance)

    async def get(self, model_cls: type[object], model_id: str) -> object | None:
        return self.fetched.get((model_cls, model_id))


def test_model_create_and_patch_article() -> None:
    session = FakeAsyncSession()
    typed_session = cast(AsyncSession, session)

    article = Article.create(
        typed_session,
        ArticleCreateDTO(title="Ada Lovelace", author="Ada", author_id="user-1", categories=None),
    )

    assert isinstance(article, Article)
    assert article.title == "Ada Lovelace"
    assert session.added == [article]

    article.patch(
        typed_session,
        ArticlePatchDTO.from_partial({"status": "under_review"}),
    )

    assert article.status == "under_review"


def test_create_dto_drops_none_for_defaulted_columns() -> None:
    payload = ArticleCreateDTO(title="Ada", author="Ada", author_id="user-1").to_orm_kwargs()

    assert "categories" not in payload
    assert "status" not in payload
    assert payload["slug"] is None


def test_patch_copies_json_lists() -> None:
    session = cast(AsyncSession, FakeAsyncSession())
    article = Article(title="Ada", author="Ada", author_id="user-1")
    tags = [{"id": "t1", "name": "maths"}]

    article.patch(session, ArticlePatchDTO.from_partial({"tags": tags}))
    tags.append({"id": "t2", "name": "poetry"})

    assert article.tags == [{"id": "t1", "name": "maths"}]


@pytest.mark.asyncio
async def test_model_delete_uses_adapter() -> None:
    session = FakeAsyncSession()
    typed_session = cast(AsyncSession, session)
    article = Article(title="Ada", author="Ada", author_id="user-1")

    await article.delete(typed_session)

    assert session.deleted == [article]


@pytest.mark.asyncio
async def test_model_get_uses_session_get() -> None:
    session = FakeAsyncSession()
    typed_session = cast(AsyncSession, session)
    revision = PendingRevision(title="Ada", content="x", author="Ada", author_id="user-1", sequence=1)
    session.fetched[(PendingRevision, "revision-1")] = revision

    found = await PendingRevision.get(typed_session, "revision-1")

    assert found is revision


def test_versions_are_append_only() -> None:
    session = cast(AsyncSession, FakeAsyncSession())
    version = ArticleVersion(article_id="a1", version_number=1, content="x", author="Ada", author_id="user-1")

    with pytest.raises(AppendOnlyRowError) as exc_info:
        version.patch(session, ArticleVersionPatchDTO.from_partial({"content": "rewritten"}))

    assert exc_info.value.operation == "patch"
    assert version.content == "x"


@pytest.mark.asyncio
async def test_versions_cannot_be_deleted_one_by_one() -> None:
    session = FakeAsyncSession()
    version = ArticleVersion(article_id="a1", version_number=1, content="x", author="Ada", author_id="user-1")

    with pytest.raises(AppendOnlyRowError):
        await version.delete(cast(AsyncSession, session))

    assert session.deleted == []


@pytest.mark.asyncio
async def test_intents_are_cleared_after_landing() -> None:
    session = FakeAsyncSession()
    intent = ModerationIntent(action="approve", revision_id="r1", article_id="a1", actor="Mod", actor_id="mod-1")

    await intent.delete(cast(AsyncSession, session))

    assert session.deleted == [intent]


def test_revision_patch_outside_allowlist_is_rejected() -> None:
    session = cast(AsyncSession, FakeAsyncSession())
    revision = PendingRevision(title="Ada", content="x", author="Ada", author_id="user-1", sequence=1)

    with pytest.raises(InvalidPatchFieldError) as exc_info:
        typed_patch(session, PendingRevision, revision, ArticlePatchDTO.from_partial({"title": "Grace"}))

    assert exc_info.value.fields == ["title"]


def test_patch_treats_naive_decision_time_as_utc() -> None:
    session = cast(AsyncSession, FakeAsyncSession())
    revision = PendingRevision(title="Ada", content="x", author="Ada", author_id="user-1", sequence=1)

    revision.patch(
        session,
        PendingRevisionPatchDTO.from_partial({"decided_at": datetime(2024, 5, 1, 12, 0)}),
    )

    assert revision.decided_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_patch_rejects_instance_of_other_model() -> None:
    session = cast(AsyncSession, FakeAsyncSession())
    revision = PendingRevision(title="Ada", content="x", author="Ada", author_id="user-1", sequence=1)

    with pytest.raises(ModelMismatchError):
        typed_patch(session, Article, revision, ArticlePatchDTO.from_partial({"status": "draft"}))


def test_patch_dto_is_sparse() -> None:
    dto = PendingRevisionPatchDTO.from_partial({"status": "approved", "decided_by": None})

    assert dto.to_patch_dict() == {"status": "approved", "decided_by": None}


def test_guardrail_scanner_finds_direct_constructor(tmp_path: Path) -> None:
    app_dir = tmp_path / "app"
    services_dir = app_dir / "services"
    services_dir.mkdir(parents=True)

    file_path = services_dir / "sample.py"
    file_path.write_text("revision = PendingRevision(title='x', content='y')\n", encoding="utf-8")

    violations = find_violations([app_dir])

    assert violations
    found_path, line, _ = violations[0]
    assert found_path == file_path
    assert line == 1


def test_guardrail_scanner_ignores_similar_names(tmp_path: Path) -> None:
    services_dir = tmp_path / "app" / "services"
    services_dir.mkdir(parents=True)
    (services_dir / "generation.py").write_text(
        "draft = GeneratedArticle(title='x', content='y')\n",
        encoding="utf-8",
    )

    assert find_violations([tmp_path / "app"]) == []


def test_guardrail_scanner_flags_direct_status_assignment(tmp_path: Path) -> None:
    services_dir = tmp_path / "app" / "services"
    services_dir.mkdir(parents=True)
    (services_dir / "publish.py").write_text(
        "if article.status == 'draft':\n    article.status = 'published'\n",
        encoding="utf-8",
    )

    violations = find_violations([tmp_path / "app"])

    assert [(line, detail.split(":")[0]) for _, line, detail in violations] == [
        (2, "lifecycle-assignment")
    ]


def test_guardrail_scanner_skips_persistence_layer(tmp_path: Path) -> None:
    typed_dir = tmp_path / "app" / "persistence" / "typed"
    typed_dir.mkdir(parents=True)
    (typed_dir / "adapters.py").write_text("instance = Article(**payload)\n", encoding="utf-8")

    assert find_violations([tmp_path / "app"]) == []
