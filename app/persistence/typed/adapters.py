"""Write adapters for article, version, revision and intent rows."""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.timestamps import ensure_aware
from app.models.article import Article, ArticleVersion, ModerationIntent, PendingRevision
from app.persistence.typed.contracts import CreateDTOProtocol, PatchDTOProtocol
from app.persistence.typed.errors import AppendOnlyRowError, InvalidPatchFieldError

ModelT = TypeVar("ModelT")


def _normalize(value: Any) -> Any:
    """Coerce a payload value into what a JSONB or timestamptz column stores."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, list | tuple):
        return [_normalize(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize(item) for key, item in value.items()}
    return copy.copy(value)


class RowWriteAdapter(Generic[ModelT]):
    """Create, patch and delete rows of one model under a write policy."""

    def __init__(
        self,
        model_cls: type[ModelT],
        *,
        patch_allowlist: frozenset[str] = frozenset(),
        append_only: bool = False,
        deletable: bool = True,
    ) -> None:
        self.model_cls = model_cls
        self.patch_allowlist = patch_allowlist
        self.append_only = append_only
        self.deletable = deletable

    @property
    def model_name(self) -> str:
        return self.model_cls.__name__

    def create(self, session: AsyncSession, dto: CreateDTOProtocol) -> ModelT:
        payload = {key: _normalize(value) for key, value in dto.to_orm_kwargs().items()}
        instance = self.model_cls(**payload)
        session.add(instance)
        return instance

    def patch(self, session: AsyncSession, instance: ModelT, dto: PatchDTOProtocol) -> ModelT:
        """Apply a sparse patch.

        JSON columns are replaced wholesale so the ORM always sees the
        attribute as changed. An empty patch leaves the row untouched.
        """
        payload = dto.to_patch_dict()
        if not payload:
            return instance
        if self.append_only:
            raise AppendOnlyRowError(self.model_name, "patch")

        invalid = set(payload) - self.patch_allowlist
        if invalid:
            raise InvalidPatchFieldError(self.model_name, list(invalid))

        for key, value in payload.items():
            setattr(instance, key, _normalize(value))
        return instance

    async def delete(self, session: AsyncSession, instance: ModelT) -> None:
        if not self.deletable:
            raise AppendOnlyRowError(self.model_name, "delete")
        await session.delete(instance)


ARTICLE_PATCH_ALLOWLIST = frozenset(
    {
        "slug",
        "title",
        "content",
        "status",
        "categories",
        "tags",
        "images",
        "infobox",
        "is_ai_generated",
        "categories_locked_by_ai",
        "current_version_id",
        "latest_version_number",
        "published_at",
        "updated_at",
    }
)

PENDING_REVISION_PATCH_ALLOWLIST = frozenset({"status", "decided_by", "decided_at"})

ADAPTERS: dict[type[Any], RowWriteAdapter[Any]] = {
    Article: RowWriteAdapter(Article, patch_allowlist=ARTICLE_PATCH_ALLOWLIST),
    ArticleVersion: RowWriteAdapter(ArticleVersion, append_only=True, deletable=False),
    PendingRevision: RowWriteAdapter(PendingRevision, patch_allowlist=PENDING_REVISION_PATCH_ALLOWLIST),
    # Intents are cleared once the decision they guard has landed.
    ModerationIntent: RowWriteAdapter(ModerationIntent, append_only=True),
}
