"""Errors raised by typed article writes."""

from __future__ import annotations


class TypedWriteError(RuntimeError):
    """Base error for typed writes."""


class AdapterNotFoundError(TypedWriteError):
    def __init__(self, model_name: str) -> None:
        self.model_name = model_name
        super().__init__(f"No write adapter for model: {model_name}")


class InvalidPatchFieldError(TypedWriteError):
    """Raised when a patch touches columns the model does not allow to change."""

    def __init__(self, model_name: str, fields: list[str]) -> None:
        self.model_name = model_name
        self.fields = sorted(fields)
        super().__init__(f"Invalid patch fields for {model_name}: {', '.join(self.fields)}")


class AppendOnlyRowError(TypedWriteError):
    """Raised on patch or delete of a row that is written once.

    Version snapshots are never rewritten or removed one by one; they only go
    away together with their article.
    """

    def __init__(self, model_name: str, operation: str) -> None:
        self.model_name = model_name
        self.operation = operation
        super().__init__(f"{model_name} rows are append-only; {operation} is not allowed")


class ModelMismatchError(TypedWriteError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected {expected} instance, got {actual}")
