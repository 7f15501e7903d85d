"""Facade for typed write operations."""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.typed.contracts import CreateDTOProtocol, PatchDTOProtocol
from app.persistence.typed.errors import AdapterNotFoundError, ModelMismatchError

ModelT = TypeVar("ModelT")


def get_adapter(model_cls: type[Any]) -> Any:
    # Deferred: adapters import the models, and the models call back into here.
    from app.persistence.typed.adapters import ADAPTERS

    adapter = ADAPTERS.get(model_cls)
    if adapter is None:
        raise AdapterNotFoundError(model_cls.__name__)
    return adapter


def _check_instance(model_cls: type[Any], instance: Any) -> None:
    if not isinstance(instance, model_cls):
        raise ModelMismatchError(model_cls.__name__, type(instance).__name__)


def create(session: AsyncSession, model_cls: type[ModelT], dto: CreateDTOProtocol) -> ModelT:
    return get_adapter(model_cls).create(session, dto)


def patch(
    session: AsyncSession,
    model_cls: type[ModelT],
    instance: ModelT,
    dto: PatchDTOProtocol,
) -> ModelT:
    _check_instance(model_cls, instance)
    return get_adapter(model_cls).patch(session, instance, dto)


async def delete(session: AsyncSession, model_cls: type[ModelT], instance: ModelT) -> None:
    _check_instance(model_cls, instance)
    await get_adapter(model_cls).delete(session, instance)
