"""Article schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.moderation import RevisionResponse


class CategoryRef(BaseModel):
    """Category or tag reference."""

    id: str
    name: str


class ArticleImage(BaseModel):
    url: str
    description: str | None = None
    attribution: str | None = None


class ArticleWrite(BaseModel):
    """Schema for creating or editing an article.

    Omitted fields are left unchanged on edits.
    """

    title: str | None = Field(default=None, max_length=500)
    content: str | None = None
    categories: list[CategoryRef] | None = None
    tags: list[CategoryRef] | None = None
    images: list[ArticleImage] | None = None
    infobox: dict[str, Any] | None = None
    change_summary: str | None = Field(default=None, max_length=1000)
    expected_version_id: str | None = None


class SubmitForReviewRequest(BaseModel):
    confirm_override: bool = False


class ArticleResponse(BaseModel):
    """Schema for article response."""

    id: str
    slug: str | None
    title: str
    content: str
    status: str
    author: str
    author_id: str
    categories: list[dict[str, Any]]
    tags: list[dict[str, Any]]
    images: list[dict[str, Any]]
    infobox: dict[str, Any] | None
    is_ai_generated: bool
    categories_locked_by_ai: bool
    current_version_id: str | None
    latest_version_number: int
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ArticleVersionResponse(BaseModel):
    """Schema for one entry of an article's history."""

    id: str
    article_id: str
    version_number: int
    title: str | None
    content: str
    author: str
    author_id: str
    changes: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ArticleEditResponse(BaseModel):
    """Result of a create or edit.

    `revision` is set when the change was filed for moderation instead of
    replacing live content.
    """

    article: ArticleResponse
    version: ArticleVersionResponse | None = None
    revision: RevisionResponse | None = None


class ContentExpansionRequest(BaseModel):
    """Passage to expand; context defaults to the article body."""

    selected_content: str = Field(min_length=1)
    context: str | None = None


class ContentExpansionResponse(BaseModel):
    expanded_content: str


class EditSuggestionsResponse(BaseModel):
    suggestions: list[str]
    improved_content: str | None = None
