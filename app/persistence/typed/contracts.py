"""DTO contracts accepted by typed writes."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CreateDTOProtocol(Protocol):
    def to_orm_kwargs(self) -> dict[str, Any]:
        """Constructor payload for a new row."""


@runtime_checkable
class PatchDTOProtocol(Protocol):
    def to_patch_dict(self) -> dict[str, Any]:
        """Sparse payload; only keys present are written."""
