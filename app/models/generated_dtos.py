"""Dataclass DTOs for typed model writes.

Create DTOs carry the constructor payload; `None` is dropped for columns that
have ORM or server defaults. Patch DTOs are sparse: only fields passed to
`from_partial` end up in the patch payload.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar


@dataclass(slots=True)
class ArticleCreateDTO:
    """Create DTO for `Article`."""

    title: str
    author: str
    author_id: str
    id: str | None = None
    slug: str | None = None
    content: str | None = None
    status: str | None = None
    categories: list[dict[str, Any]] | None = None
    tags: list[dict[str, Any]] | None = None
    images: list[dict[str, Any]] | None = None
    infobox: dict[str, Any] | None = None
    is_ai_generated: bool | None = None
    categories_locked_by_ai: bool | None = None
    current_version_id: str | None = None
    latest_version_number: int | None = None
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "id",
        "content",
        "status",
        "categories",
        "tags",
        "images",
        "is_ai_generated",
        "categories_locked_by_ai",
        "latest_version_number",
        "created_at",
        "updated_at",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


@dataclass(slots=True)
class ArticlePatchDTO:
    """Sparse patch DTO for `Article`."""

    slug: str | None = None
    title: str | None = None
    content: str | None = None
    status: str | None = None
    categories: list[dict[str, Any]] | None = None
    tags: list[dict[str, Any]] | None = None
    images: list[dict[str, Any]] | None = None
    infobox: dict[str, Any] | None = None
    is_ai_generated: bool | None = None
    categories_locked_by_ai: bool | None = None
    current_version_id: str | None = None
    latest_version_number: int | None = None
    published_at: datetime | None = None
    updated_at: datetime | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "ArticlePatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }


@dataclass(slots=True)
class ArticleVersionCreateDTO:
    """Create DTO for `ArticleVersion`."""

    article_id: str
    version_number: int
    content: str
    author: str
    author_id: str
    id: str | None = None
    title: str | None = None
    changes: str | None = None
    created_at: datetime | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "id",
        "changes",
        "created_at",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


@dataclass(slots=True)
class ArticleVersionPatchDTO:
    """Sparse patch DTO for `ArticleVersion`.

    Versions are immutable; the adapter rejects every field.
    """

    title: str | None = None
    content: str | None = None
    changes: str | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "ArticleVersionPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }


@dataclass(slots=True)
class PendingRevisionCreateDTO:
    """Create DTO for `PendingRevision`."""

    article_id: str
    title: str
    content: str
    author: str
    author_id: str
    sequence: int
    id: str | None = None
    changes: str | None = None
    status: str | None = None
    base_version_id: str | None = None
    created_at: datetime | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "id",
        "changes",
        "status",
        "created_at",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


@dataclass(slots=True)
class PendingRevisionPatchDTO:
    """Sparse patch DTO for `PendingRevision`."""

    status: str | None = None
    decided_by: str | None = None
    decided_at: datetime | None = None
    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "PendingRevisionPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("_provided_fields", None)
        return {
            key: value
            for key, value in payload.items()
            if key in self._provided_fields
        }


@dataclass(slots=True)
class ModerationIntentCreateDTO:
    """Create DTO for `ModerationIntent`."""

    action: str
    revision_id: str
    article_id: str
    actor: str
    actor_id: str
    id: str | None = None
    created_at: datetime | None = None

    _DROP_NONE_FIELDS: ClassVar[set[str]] = {
        "id",
        "created_at",
    }

    def to_orm_kwargs(self) -> dict[str, Any]:
        payload = asdict(self)
        for key in self._DROP_NONE_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


@dataclass(slots=True)
class ModerationIntentPatchDTO:
    """Sparse patch DTO for `ModerationIntent`."""

    _provided_fields: set[str] = field(
        default_factory=set,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_partial(cls, payload: dict[str, Any]) -> "ModerationIntentPatchDTO":
        obj = cls(**payload)
        obj._provided_fields = set(payload.keys())
        return obj

    def to_patch_dict(self) -> dict[str, Any]:
        return {}


__all__ = [
    "ArticleCreateDTO",
    "ArticlePatchDTO",
    "ArticleVersionCreateDTO",
    "ArticleVersionPatchDTO",
    "ModerationIntentCreateDTO",
    "ModerationIntentPatchDTO",
    "PendingRevisionCreateDTO",
    "PendingRevisionPatchDTO",
]
