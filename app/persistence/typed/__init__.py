"""Typed writes for article models; every row change passes through an adapter policy."""

from app.persistence.typed.writes import create, delete, get_adapter, patch

__all__ = ["create", "patch", "delete", "get_adapter"]
