"""Article authoring and history endpoints."""

from fastapi import APIRouter, status

from app.api.v1.dependencies import CurrentActor, Lifecycle, Slugs, Versions
from app.models.article import Article, ArticleVersion
from app.schemas.article import (
    ArticleEditResponse,
    ArticleResponse,
    ArticleVersionResponse,
    ArticleWrite,
    ContentExpansionRequest,
    ContentExpansionResponse,
    EditSuggestionsResponse,
    SubmitForReviewRequest,
)
from app.schemas.moderation import RevisionResponse
from app.services.article_lifecycle import ArticleChanges, EditResult

router = APIRouter()


def _to_changes(payload: ArticleWrite) -> ArticleChanges:
    data = payload.model_dump(exclude={"expected_version_id"})
    return ArticleChanges(**data)


def _edit_response(result: EditResult) -> ArticleEditResponse:
    return ArticleEditResponse(
        article=ArticleResponse.model_validate(result.article),
        version=ArticleVersionResponse.model_validate(result.version) if result.version else None,
        revision=RevisionResponse.model_validate(result.revision) if result.revision else None,
    )


@router.post("", response_model=ArticleEditResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    payload: ArticleWrite,
    current_actor: CurrentActor,
    lifecycle: Lifecycle,
) -> ArticleEditResponse:
    """Create a draft article with its first version."""
    result = await lifecycle.create_or_update_article(current_actor, _to_changes(payload))
    return _edit_response(result)


@router.get("/by-slug/{slug}", response_model=ArticleResponse)
async def get_article_by_slug(slug: str, _current_actor: CurrentActor, slugs: Slugs) -> Article:
    """Public read by slug; articles stored without a slug get one here."""
    return await slugs.resolve(slug)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: str, _current_actor: CurrentActor, lifecycle: Lifecycle) -> Article:
    """Get an article by ID."""
    return await lifecycle.get_article(article_id)


@router.put("/{article_id}", response_model=ArticleEditResponse)
async def update_article(
    article_id: str,
    payload: ArticleWrite,
    current_actor: CurrentActor,
    lifecycle: Lifecycle,
) -> ArticleEditResponse:
    """Edit an article.

    Edits to published articles are filed as a pending revision.
    """
    result = await lifecycle.create_or_update_article(
        current_actor,
        _to_changes(payload),
        article_id=article_id,
        expected_version_id=payload.expected_version_id,
    )
    return _edit_response(result)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(article_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> None:
    """Delete an article with its versions and revisions."""
    await lifecycle.delete_article(article_id, current_actor)


@router.post("/{article_id}/submit", response_model=ArticleResponse)
async def submit_for_review(
    article_id: str,
    current_actor: CurrentActor,
    lifecycle: Lifecycle,
    payload: SubmitForReviewRequest | None = None,
) -> Article:
    """Submit a draft for review."""
    confirm_override = payload.confirm_override if payload else False
    return await lifecycle.submit_for_review(article_id, current_actor, confirm_override=confirm_override)


@router.post("/{article_id}/publish", response_model=ArticleResponse)
async def publish_article(article_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> Article:
    return await lifecycle.publish_article(article_id, current_actor)


@router.post("/{article_id}/return-to-draft", response_model=ArticleResponse)
async def return_to_draft(article_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> Article:
    return await lifecycle.return_to_draft(article_id, current_actor)


@router.post("/{article_id}/archive", response_model=ArticleResponse)
async def archive_article(article_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> Article:
    return await lifecycle.archive_article(article_id, current_actor)


@router.post("/{article_id}/classify", response_model=ArticleResponse)
async def classify_categories(article_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> Article:
    """Replace categories with generated ones and lock them."""
    return await lifecycle.classify_categories(article_id, current_actor)


@router.post("/{article_id}/expand", response_model=ContentExpansionResponse)
async def expand_content(
    article_id: str,
    payload: ContentExpansionRequest,
    current_actor: CurrentActor,
    lifecycle: Lifecycle,
) -> ContentExpansionResponse:
    """Expand a selected passage. The result is returned, not saved."""
    expanded = await lifecycle.expand_content(
        article_id,
        current_actor,
        payload.selected_content,
        payload.context,
    )
    return ContentExpansionResponse(expanded_content=expanded)


@router.post("/{article_id}/suggest-edits", response_model=EditSuggestionsResponse)
async def suggest_edits(article_id: str, current_actor: CurrentActor, lifecycle: Lifecycle) -> EditSuggestionsResponse:
    result = await lifecycle.suggest_edits(article_id, current_actor)
    return EditSuggestionsResponse(suggestions=result.suggestions, improved_content=result.improved_content)


@router.get("/{article_id}/versions", response_model=list[ArticleVersionResponse])
async def list_versions(
    article_id: str,
    _current_actor: CurrentActor,
    lifecycle: Lifecycle,
    versions: Versions,
) -> list[ArticleVersion]:
    """Article history, newest first."""
    await lifecycle.get_article(article_id)
    return await versions.list_versions(article_id)


@router.get("/{article_id}/versions/number/{number}", response_model=ArticleVersionResponse)
async def get_version_by_number(
    article_id: str,
    number: int,
    _current_actor: CurrentActor,
    lifecycle: Lifecycle,
    versions: Versions,
) -> ArticleVersion:
    await lifecycle.get_article(article_id)
    return await versions.get_version_by_number(article_id, number)


@router.post(
    "/{article_id}/versions/{version_id}/restore",
    response_model=ArticleVersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def restore_version(
    article_id: str,
    version_id: str,
    current_actor: CurrentActor,
    lifecycle: Lifecycle,
) -> ArticleVersion:
    """Re-apply an earlier version as a new version."""
    return await lifecycle.restore_version(article_id, version_id, current_actor)
