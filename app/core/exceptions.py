"""Custom exception classes for the application."""

from typing import Any


class PlexipediaError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Validation Errors
class ValidationError(PlexipediaError):
    """Input rejected before any write."""

    pass


class InfoboxRequiredError(ValidationError):
    """Article submitted for review without an info box."""

    def __init__(self, article_id: str) -> None:
        super().__init__(
            "This article does not have an info box. Info boxes are required for all articles.",
            {"article_id": article_id},
        )


class CategoriesLockedError(ValidationError):
    """Manual category edit on an article classified by AI."""

    def __init__(self, article_id: str) -> None:
        super().__init__(
            f"Categories are locked by AI classification for article: {article_id}",
            {"article_id": article_id},
        )


# Not-found Errors
class NotFoundError(PlexipediaError):
    """Requested entity does not exist."""

    pass


class ArticleNotFoundError(NotFoundError):
    """Article not found."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Article not found: {reference}", {"reference": reference})


class VersionNotFoundError(NotFoundError):
    """Article version not found."""

    def __init__(self, article_id: str, reference: str | int) -> None:
        super().__init__(
            f"Version {reference} not found for article: {article_id}",
            {"article_id": article_id, "reference": str(reference)},
        )


class RevisionNotFoundError(NotFoundError):
    """Pending revision not found."""

    def __init__(self, revision_id: str) -> None:
        super().__init__(f"Revision not found: {revision_id}", {"revision_id": revision_id})


# Authorization Errors
class AuthenticationError(PlexipediaError):
    """Authentication failed."""

    pass


class InvalidTokenError(AuthenticationError):
    """Invalid or expired token."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class PermissionDeniedError(PlexipediaError):
    """Actor is not allowed to perform the operation."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Moderator privileges required for: {operation}", {"operation": operation})


# State Errors
class InvalidStateTransitionError(PlexipediaError):
    """Transition not allowed by the state machine."""

    def __init__(
        self,
        *,
        entity: str,
        from_state: str,
        to_state: str,
        allowed_targets: list[str],
    ) -> None:
        super().__init__(
            f"Invalid transition for {entity}: {from_state} -> {to_state}",
            {
                "entity": entity,
                "from_state": from_state,
                "to_state": to_state,
                "allowed_targets": allowed_targets,
            },
        )


class ConcurrencyConflictError(PlexipediaError):
    """A concurrent writer changed the entity first."""

    def __init__(self, message: str, *, article_id: str | None = None, **details: Any) -> None:
        payload = {"article_id": article_id} if article_id else {}
        super().__init__(message, {**payload, **details})


class PartialCommitError(PlexipediaError):
    """A multi-step moderation write stopped halfway and needs replay."""

    def __init__(self, intent_id: str, action: str, revision_id: str) -> None:
        super().__init__(
            f"Moderation {action} for revision {revision_id} was only partially applied",
            {"intent_id": intent_id, "action": action, "revision_id": revision_id},
        )


# External API Errors
class GenerationError(PlexipediaError):
    """Generation backend returned no usable article."""

    def __init__(self, topic: str, message: str) -> None:
        super().__init__(f"Generation failed for '{topic}': {message}", {"topic": topic})


class DuplicateArticleError(GenerationError):
    """A generated draft covers the same subject as an existing article."""

    def __init__(self, topic: str, reason: str, similar_ids: list[str]) -> None:
        super().__init__(topic, f"duplicate of existing article ({reason})")
        self.details["similar_ids"] = similar_ids


# Store Errors
class StoreError(PlexipediaError):
    """Base error for persistent store failures."""

    pass


class TransientStoreError(StoreError):
    """Store failure that can usually be retried."""

    pass


class PermanentStoreError(StoreError):
    """Non-transient store failure."""

    pass
