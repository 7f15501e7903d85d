"""Moderation queue schemas."""

from datetime import datetime

from pydantic import BaseModel


class RevisionResponse(BaseModel):
    """Schema for a pending revision."""

    id: str
    article_id: str
    title: str
    content: str
    author: str
    author_id: str
    changes: str
    sequence: int
    status: str
    base_version_id: str | None
    decided_by: str | None
    decided_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class QueueItemResponse(BaseModel):
    """Revision joined with its article's current title."""

    revision: RevisionResponse
    article_title: str

    model_config = {"from_attributes": True}


class QueueListResponse(BaseModel):
    items: list[QueueItemResponse]
    total: int
