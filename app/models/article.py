"""Article, version history and moderation models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import (
    Base,
    CreatedAtMixin,
    IdMixin,
    TimestampMixin,
    TypedModelMixin,
    id_string,
)
from app.models.generated_dtos import (
    ArticleCreateDTO,
    ArticlePatchDTO,
    ArticleVersionCreateDTO,
    ArticleVersionPatchDTO,
    ModerationIntentCreateDTO,
    ModerationIntentPatchDTO,
    PendingRevisionCreateDTO,
    PendingRevisionPatchDTO,
)


class Article(
    TypedModelMixin[ArticleCreateDTO, ArticlePatchDTO],
    Base,
    IdMixin,
    TimestampMixin,
):
    """Encyclopedia article with its live content and lifecycle status."""

    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_status_updated_at", "status", "updated_at"),
    )

    slug: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft", index=True)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # [{id, name}]
    categories: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    tags: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    # [{url, description, attribution}]
    images: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    # {title, image, key_facts}
    infobox: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    is_ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    categories_locked_by_ai: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    current_version_id: Mapped[str | None] = mapped_column(id_string(), nullable=True)
    latest_version_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": row_version}

    def __repr__(self) -> str:
        return f"<Article {self.id} status={self.status} v{self.latest_version_number}>"


class ArticleVersion(
    TypedModelMixin[ArticleVersionCreateDTO, ArticleVersionPatchDTO],
    Base,
    IdMixin,
    CreatedAtMixin,
):
    """Immutable snapshot of an article's content."""

    __tablename__ = "article_versions"
    __table_args__ = (
        UniqueConstraint("article_id", "version_number", name="uq_article_versions_article_number"),
    )

    article_id: Mapped[str] = mapped_column(
        id_string(),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    changes: Mapped[str] = mapped_column(Text, nullable=False, default="")


class PendingRevision(
    TypedModelMixin[PendingRevisionCreateDTO, PendingRevisionPatchDTO],
    Base,
    IdMixin,
    CreatedAtMixin,
):
    """Proposed change to a published article awaiting a moderator."""

    __tablename__ = "pending_revisions"
    __table_args__ = (
        UniqueConstraint("article_id", "sequence", name="uq_pending_revisions_article_sequence"),
        Index("ix_pending_revisions_status_created_at", "status", "created_at"),
    )

    article_id: Mapped[str] = mapped_column(
        id_string(),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    changes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    base_version_id: Mapped[str | None] = mapped_column(id_string(), nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ModerationIntent(
    TypedModelMixin[ModerationIntentCreateDTO, ModerationIntentPatchDTO],
    Base,
    IdMixin,
    CreatedAtMixin,
):
    """Write-ahead marker for an approve/reject that has not fully landed."""

    __tablename__ = "moderation_intents"

    action: Mapped[str] = mapped_column(String(16), nullable=False)
    revision_id: Mapped[str] = mapped_column(id_string(), nullable=False, index=True)
    article_id: Mapped[str] = mapped_column(id_string(), nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
