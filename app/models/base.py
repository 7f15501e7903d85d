"""Declarative base, id/timestamp mixins and typed write helpers."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import DateTime, String, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.core.ids import generate_cuid
from app.domain.timestamps import utc_now
from app.persistence.typed.contracts import CreateDTOProtocol, PatchDTOProtocol

CreateDTOT = TypeVar("CreateDTOT", bound=CreateDTOProtocol)
PatchDTOT = TypeVar("PatchDTOT", bound=PatchDTOProtocol)
ModelSelfT = TypeVar("ModelSelfT", bound="TypedModelMixin[Any, Any]")

ID_LENGTH = 32


def id_string() -> String:
    """Column type for CUID identifiers and references to them."""
    return String(ID_LENGTH)


class Base(DeclarativeBase):
    pass


class TypedModelMixin(Generic[CreateDTOT, PatchDTOT]):
    """Row helpers that route every write through the model's adapter policy."""

    @classmethod
    async def get(cls: type[ModelSelfT], session: AsyncSession, model_id: str) -> ModelSelfT | None:
        return await session.get(cls, model_id)

    @classmethod
    def create(cls: type[ModelSelfT], session: AsyncSession, dto: CreateDTOT) -> ModelSelfT:
        from app.persistence.typed import create

        return create(session, cls, dto)

    def patch(self: ModelSelfT, session: AsyncSession, dto: PatchDTOT) -> ModelSelfT:
        from app.persistence.typed import patch

        return patch(session, type(self), self, dto)

    async def delete(self, session: AsyncSession) -> None:
        from app.persistence.typed import delete

        await delete(session, type(self), self)


class IdMixin:
    id: Mapped[str] = mapped_column(id_string(), primary_key=True, default=generate_cuid)


class CreatedAtMixin:
    """Append-only rows carry only a creation time."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )
