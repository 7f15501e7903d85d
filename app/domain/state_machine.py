"""Article and revision status enums with their transition tables."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from app.core.exceptions import InvalidStateTransitionError


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class RevisionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


ARTICLE_TRANSITIONS: dict[ArticleStatus, set[ArticleStatus]] = {
    ArticleStatus.DRAFT: {ArticleStatus.UNDER_REVIEW},
    # under_review -> under_review is a resubmission
    ArticleStatus.UNDER_REVIEW: {
        ArticleStatus.UNDER_REVIEW,
        ArticleStatus.PUBLISHED,
        ArticleStatus.DRAFT,
    },
    ArticleStatus.PUBLISHED: {ArticleStatus.UNDER_REVIEW, ArticleStatus.ARCHIVED},
    ArticleStatus.ARCHIVED: set(),
}

REVISION_TRANSITIONS: dict[RevisionStatus, set[RevisionStatus]] = {
    RevisionStatus.PENDING: {RevisionStatus.APPROVED, RevisionStatus.REJECTED},
    RevisionStatus.APPROVED: set(),
    RevisionStatus.REJECTED: set(),
}


@dataclass(slots=True)
class TransitionValidationResult:
    valid: bool
    from_state: Enum
    to_state: Enum
    allowed_targets: list[Enum]


def _table_for(state: Enum) -> dict:
    if isinstance(state, ArticleStatus):
        return ARTICLE_TRANSITIONS
    if isinstance(state, RevisionStatus):
        return REVISION_TRANSITIONS
    raise TypeError(f"Unknown status type: {type(state).__name__}")


def allowed_targets(from_state: ArticleStatus | RevisionStatus) -> set:
    return set(_table_for(from_state).get(from_state, set()))


def can_transition(
    from_state: ArticleStatus | RevisionStatus,
    to_state: ArticleStatus | RevisionStatus,
) -> bool:
    # Self-transitions are only legal when listed in the table.
    return to_state in allowed_targets(from_state)


def validate_transition(
    from_state: ArticleStatus | RevisionStatus,
    to_state: ArticleStatus | RevisionStatus,
) -> TransitionValidationResult:
    targets = sorted(allowed_targets(from_state), key=lambda item: item.value)
    return TransitionValidationResult(
        valid=can_transition(from_state, to_state),
        from_state=from_state,
        to_state=to_state,
        allowed_targets=targets,
    )


def ensure_transition(
    from_state: ArticleStatus | RevisionStatus,
    to_state: ArticleStatus | RevisionStatus,
) -> None:
    """Raise `InvalidStateTransitionError` unless the table allows the move."""
    result = validate_transition(from_state, to_state)
    if result.valid:
        return
    raise InvalidStateTransitionError(
        entity="article" if isinstance(from_state, ArticleStatus) else "revision",
        from_state=from_state.value,
        to_state=to_state.value,
        allowed_targets=[target.value for target in result.allowed_targets],
    )


def article_status(value: str | ArticleStatus) -> ArticleStatus:
    """Parse a stored article status, rejecting unknown strings."""
    try:
        return ArticleStatus(value)
    except ValueError as exc:
        raise InvalidStateTransitionError(
            entity="article",
            from_state=str(value),
            to_state=str(value),
            allowed_targets=[],
        ) from exc


def revision_status(value: str | RevisionStatus) -> RevisionStatus:
    """Parse a stored revision status, rejecting unknown strings."""
    try:
        return RevisionStatus(value)
    except ValueError as exc:
        raise InvalidStateTransitionError(
            entity="revision",
            from_state=str(value),
            to_state=str(value),
            allowed_targets=[],
        ) from exc
