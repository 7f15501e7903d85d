"""Article lifecycle: edits, review submission, moderation decisions and deletion."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

from app.core.exceptions import (
    ArticleNotFoundError,
    CategoriesLockedError,
    ConcurrencyConflictError,
    InfoboxRequiredError,
    InvalidStateTransitionError,
    PartialCommitError,
    PermissionDeniedError,
    RevisionNotFoundError,
    ValidationError,
)
from app.core.ids import generate_cuid
from app.domain.actors import Actor
from app.domain.infobox import has_infobox, insert_infobox_template, strip_infobox
from app.domain.slugs import unique_slug
from app.domain.state_machine import (
    ArticleStatus,
    RevisionStatus,
    article_status,
    ensure_transition,
    revision_status,
)
from app.domain.timestamps import utc_now
from app.models.article import Article, ArticleVersion, ModerationIntent, PendingRevision
from app.models.generated_dtos import (
    ArticleCreateDTO,
    ModerationIntentCreateDTO,
    PendingRevisionCreateDTO,
)
from app.repositories.article_store import ArticleStore
from app.services.version_store import VersionStore

logger = logging.getLogger(__name__)

INITIAL_VERSION_SUMMARY = "Initial version"
INFOBOX_TEMPLATE_SUMMARY = "Inserted info box template"

APPROVE = "approve"
REJECT = "reject"


@dataclass(slots=True)
class ArticleChanges:
    """Author-supplied fields for creating or editing an article.

    `None` means "leave unchanged" on updates.
    """

    title: str | None = None
    content: str | None = None
    categories: list[dict[str, Any]] | None = None
    tags: list[dict[str, Any]] | None = None
    images: list[dict[str, Any]] | None = None
    infobox: dict[str, Any] | None = None
    change_summary: str | None = None

    def metadata_updates(self) -> dict[str, Any]:
        updates = {
            "categories": self.categories,
            "tags": self.tags,
            "images": self.images,
            "infobox": self.infobox,
        }
        return {key: value for key, value in updates.items() if value is not None}


@dataclass(slots=True)
class EditResult:
    """Outcome of `create_or_update_article`.

    Exactly one of `version` (content changed in place) or `revision` (change
    filed for moderation) is set when content changed; both are None for a
    metadata-only edit.
    """

    article: Article
    version: ArticleVersion | None = None
    revision: PendingRevision | None = None


@dataclass(slots=True)
class CategorySuggestion:
    categories: list[dict[str, Any]]
    tags: list[dict[str, Any]] = field(default_factory=list)


class CategorySuggester(Protocol):
    async def suggest(self, *, title: str, content: str) -> CategorySuggestion: ...


@dataclass(slots=True)
class EditSuggestions:
    suggestions: list[str]
    improved_content: str | None = None


class WritingAssistant(Protocol):
    async def expand(self, *, title: str, selected_content: str, context: str) -> str: ...

    async def suggest_edits(self, *, title: str, content: str) -> EditSuggestions: ...


@dataclass(slots=True)
class ReplayReport:
    replayed: list[str] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class _WriteCounter:
    """Counts store writes made by a moderation step."""

    def __init__(self) -> None:
        self.writes = 0


def _category_keys(categories: list[dict[str, Any]] | None) -> list[str]:
    return sorted(str(item.get("id") or item.get("name") or "") for item in categories or [])


def _require_moderator(actor: Actor, operation: str) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError(operation)


class ArticleLifecycleService:
    """Every mutation of an article's content or status goes through here."""

    def __init__(
        self,
        store: ArticleStore,
        *,
        category_suggester: CategorySuggester | None = None,
        writing_assistant: WritingAssistant | None = None,
    ) -> None:
        self.store = store
        self.versions = VersionStore(store)
        self.category_suggester = category_suggester
        self.writing_assistant = writing_assistant

    @asynccontextmanager
    async def _atomic(self) -> AsyncIterator[None]:
        if self.store.supports_transactions:
            async with self.store.transaction():
                yield
        else:
            yield

    async def get_article(self, article_id: str) -> Article:
        article = await self.store.get_article(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        return article

    async def get_revision(self, revision_id: str) -> PendingRevision:
        revision = await self.store.get_revision(revision_id)
        if revision is None:
            raise RevisionNotFoundError(revision_id)
        return revision

    async def _open_revision(self, article_id: str) -> PendingRevision | None:
        pending = await self.store.list_revisions(
            status=RevisionStatus.PENDING.value,
            article_id=article_id,
        )
        return pending[0] if pending else None

    async def _slug_taken(self, slug: str) -> bool:
        return await self.store.find_article_by_slug(slug) is not None

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    async def create_or_update_article(
        self,
        actor: Actor,
        changes: ArticleChanges,
        *,
        article_id: str | None = None,
        expected_version_id: str | None = None,
    ) -> EditResult:
        """Create a draft, or apply an edit according to the article's status."""
        if article_id is None:
            return await self.create_article(actor, changes)
        return await self.update_article(
            actor,
            article_id,
            changes,
            expected_version_id=expected_version_id,
        )

    async def create_article(
        self,
        actor: Actor,
        changes: ArticleChanges,
        *,
        is_ai_generated: bool = False,
        categories_locked_by_ai: bool = False,
        initial_summary: str = INITIAL_VERSION_SUMMARY,
    ) -> EditResult:
        """Create a draft article with version 1."""
        title = (changes.title or "").strip()
        if not title:
            raise ValidationError("Article title is required")

        now = utc_now()
        new_id = generate_cuid()
        slug = await unique_slug(title, new_id, self._slug_taken)
        content = changes.content or ""

        async with self._atomic():
            article = await self.store.create_article(
                ArticleCreateDTO(
                    id=new_id,
                    slug=slug,
                    title=title,
                    content=content,
                    status=ArticleStatus.DRAFT.value,
                    author=actor.name,
                    author_id=actor.id,
                    categories=list(changes.categories or []),
                    tags=list(changes.tags or []),
                    images=list(changes.images or []),
                    infobox=changes.infobox,
                    is_ai_generated=is_ai_generated,
                    categories_locked_by_ai=categories_locked_by_ai,
                    latest_version_number=0,
                    created_at=now,
                    updated_at=now,
                )
            )
            version = await self.versions.append_version(
                article,
                content,
                actor,
                changes.change_summary or initial_summary,
            )

        logger.info(
            "Article created",
            extra={
                "article_id": article.id,
                "slug": slug,
                "author_id": actor.id,
                "is_ai_generated": is_ai_generated,
            },
        )
        return EditResult(article=article, version=version)

    async def update_article(
        self,
        actor: Actor,
        article_id: str,
        changes: ArticleChanges,
        *,
        expected_version_id: str | None = None,
    ) -> EditResult:
        """Edit an article.

        Drafts and first-time submissions get a new version in place. Live
        articles get a pending revision and move to under_review; their live
        content stays untouched until a moderator approves.
        """
        article = await self.get_article(article_id)
        status = article_status(article.status)

        if expected_version_id is not None and expected_version_id != article.current_version_id:
            raise ConcurrencyConflictError(
                "Article changed since it was loaded",
                article_id=article.id,
                expected_version_id=expected_version_id,
                current_version_id=article.current_version_id,
            )
        if status == ArticleStatus.ARCHIVED:
            ensure_transition(status, status)
        if (
            changes.categories is not None
            and article.categories_locked_by_ai
            and not actor.is_admin
            and _category_keys(changes.categories) != _category_keys(article.categories)
        ):
            raise CategoriesLockedError(article.id)
        if changes.title is not None and not changes.title.strip():
            raise ValidationError("Article title is required")

        open_revision = await self._open_revision(article.id)
        if open_revision is not None:
            raise ConcurrencyConflictError(
                "Article already has a revision awaiting moderation",
                article_id=article.id,
                revision_id=open_revision.id,
            )

        title = changes.title.strip() if changes.title is not None else article.title
        content = changes.content if changes.content is not None else article.content
        content_changed = title != article.title or content != article.content
        metadata = changes.metadata_updates()

        is_live = status == ArticleStatus.PUBLISHED or (
            status == ArticleStatus.UNDER_REVIEW and article.published_at is not None
        )
        if is_live and content_changed:
            return await self._file_revision(article, status, actor, title, content, changes, metadata)

        if not content_changed:
            if metadata:
                await self.store.patch_article(article, {**metadata, "updated_at": utc_now()})
                logger.info(
                    "Article metadata updated",
                    extra={"article_id": article.id, "fields": sorted(metadata)},
                )
            return EditResult(article=article)

        async with self._atomic():
            version = await self.versions.append_version(
                article,
                content,
                actor,
                changes.change_summary or "Edited article",
                title=title,
                extra_updates=metadata,
            )
        return EditResult(article=article, version=version)

    async def _file_revision(
        self,
        article: Article,
        status: ArticleStatus,
        actor: Actor,
        title: str,
        content: str,
        changes: ArticleChanges,
        metadata: dict[str, Any],
    ) -> EditResult:
        ensure_transition(status, ArticleStatus.UNDER_REVIEW)
        now = utc_now()
        async with self._atomic():
            revision = await self.store.create_revision(
                PendingRevisionCreateDTO(
                    id=generate_cuid(),
                    article_id=article.id,
                    title=title,
                    content=content,
                    author=actor.name,
                    author_id=actor.id,
                    sequence=await self.store.next_revision_sequence(article.id),
                    changes=changes.change_summary or "",
                    status=RevisionStatus.PENDING.value,
                    base_version_id=article.current_version_id,
                    created_at=now,
                )
            )
            await self.store.patch_article(
                article,
                {**metadata, "status": ArticleStatus.UNDER_REVIEW.value, "updated_at": now},
            )

        logger.info(
            "Revision filed for moderation",
            extra={
                "article_id": article.id,
                "revision_id": revision.id,
                "sequence": revision.sequence,
                "author_id": actor.id,
            },
        )
        return EditResult(article=article, revision=revision)

    async def submit_for_review(
        self,
        article_id: str,
        actor: Actor,
        *,
        confirm_override: bool = False,
    ) -> Article:
        """Move a draft (or resubmit a first-time submission) to under_review.

        Non-moderators must have an info box. With `confirm_override` the
        blank template is inserted as a new version and the submission goes
        ahead; moderators skip the check.
        """
        article = await self.get_article(article_id)
        status = article_status(article.status)
        if status not in (ArticleStatus.DRAFT, ArticleStatus.UNDER_REVIEW) or article.published_at is not None:
            raise InvalidStateTransitionError(
                entity="article",
                from_state=status.value,
                to_state=ArticleStatus.UNDER_REVIEW.value,
                allowed_targets=[],
            )
        ensure_transition(status, ArticleStatus.UNDER_REVIEW)

        under_review = {"status": ArticleStatus.UNDER_REVIEW.value, "updated_at": utc_now()}
        if actor.is_admin or has_infobox(article.content):
            await self.store.patch_article(article, under_review)
        elif not confirm_override:
            raise InfoboxRequiredError(article.id)
        else:
            async with self._atomic():
                await self.versions.append_version(
                    article,
                    insert_infobox_template(article.content),
                    actor,
                    INFOBOX_TEMPLATE_SUMMARY,
                    extra_updates=under_review,
                )

        logger.info(
            "Article submitted for review",
            extra={"article_id": article.id, "actor_id": actor.id, "from_status": status.value},
        )
        return article

    async def restore_version(self, article_id: str, version_id: str, actor: Actor) -> ArticleVersion:
        article = await self.get_article(article_id)
        status = article_status(article.status)
        if status == ArticleStatus.ARCHIVED:
            ensure_transition(status, status)
        open_revision = await self._open_revision(article.id)
        if open_revision is not None:
            raise ConcurrencyConflictError(
                "Cannot restore while a revision awaits moderation",
                article_id=article.id,
                revision_id=open_revision.id,
            )
        if article.published_at is not None:
            _require_moderator(actor, "restore_version")

        async with self._atomic():
            return await self.versions.restore(article, version_id, actor)

    async def classify_categories(self, article_id: str, actor: Actor) -> Article:
        """Replace categories and tags with generated ones and lock them."""
        if self.category_suggester is None:
            raise ValidationError("Category classification is not configured")
        article = await self.get_article(article_id)
        status = article_status(article.status)
        if status == ArticleStatus.ARCHIVED:
            ensure_transition(status, status)
        if article.categories_locked_by_ai and not actor.is_admin:
            raise CategoriesLockedError(article.id)

        suggestion = await self.category_suggester.suggest(
            title=article.title,
            content=strip_infobox(article.content),
        )
        await self.store.patch_article(
            article,
            {
                "categories": suggestion.categories,
                "tags": suggestion.tags,
                "categories_locked_by_ai": True,
                "updated_at": utc_now(),
            },
        )
        logger.info(
            "Article categories classified",
            extra={
                "article_id": article.id,
                "categories": len(suggestion.categories),
                "tags": len(suggestion.tags),
            },
        )
        return article

    async def _assisted_article(self, article_id: str) -> tuple[Article, WritingAssistant]:
        if self.writing_assistant is None:
            raise ValidationError("Writing assistance is not configured")
        article = await self.get_article(article_id)
        status = article_status(article.status)
        if status == ArticleStatus.ARCHIVED:
            ensure_transition(status, status)
        return article, self.writing_assistant

    async def expand_content(
        self,
        article_id: str,
        actor: Actor,
        selected_content: str,
        context: str | None = None,
    ) -> str:
        """Return an expanded version of a passage; nothing is saved.

        The caller splices the result into an edit, which then goes through
        the normal draft or revision path.
        """
        if not selected_content.strip():
            raise ValidationError("Select some content to expand")
        article, assistant = await self._assisted_article(article_id)
        expanded = await assistant.expand(
            title=article.title,
            selected_content=selected_content,
            context=context if context is not None else strip_infobox(article.content),
        )
        logger.info(
            "Article content expanded",
            extra={
                "article_id": article.id,
                "actor_id": actor.id,
                "selection_length": len(selected_content),
                "expanded_length": len(expanded),
            },
        )
        return expanded

    async def suggest_edits(self, article_id: str, actor: Actor) -> EditSuggestions:
        article, assistant = await self._assisted_article(article_id)
        result = await assistant.suggest_edits(title=article.title, content=article.content)
        logger.info(
            "Article edit suggestions generated",
            extra={"article_id": article.id, "actor_id": actor.id, "suggestions": len(result.suggestions)},
        )
        return result

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    async def publish_article(self, article_id: str, actor: Actor) -> Article:
        _require_moderator(actor, "publish_article")
        article = await self.get_article(article_id)
        status = article_status(article.status)
        if status != ArticleStatus.UNDER_REVIEW:
            raise InvalidStateTransitionError(
                entity="article",
                from_state=status.value,
                to_state=ArticleStatus.PUBLISHED.value,
                allowed_targets=[],
            )
        open_revision = await self._open_revision(article.id)
        if open_revision is not None:
            raise ConcurrencyConflictError(
                "Article has a revision awaiting moderation; approve or reject it instead",
                article_id=article.id,
                revision_id=open_revision.id,
            )

        await self.store.patch_article(article, self._published_updates(article))
        logger.info("Article published", extra={"article_id": article.id, "actor_id": actor.id})
        return article

    async def return_to_draft(self, article_id: str, actor: Actor) -> Article:
        _require_moderator(actor, "return_to_draft")
        article = await self.get_article(article_id)
        status = article_status(article.status)
        if article.published_at is not None:
            raise InvalidStateTransitionError(
                entity="article",
                from_state=status.value,
                to_state=ArticleStatus.DRAFT.value,
                allowed_targets=[],
            )
        ensure_transition(status, ArticleStatus.DRAFT)

        await self.store.patch_article(
            article,
            {"status": ArticleStatus.DRAFT.value, "updated_at": utc_now()},
        )
        logger.info("Article returned to draft", extra={"article_id": article.id, "actor_id": actor.id})
        return article

    async def archive_article(self, article_id: str, actor: Actor) -> Article:
        _require_moderator(actor, "archive_article")
        article = await self.get_article(article_id)
        ensure_transition(article_status(article.status), ArticleStatus.ARCHIVED)

        await self.store.patch_article(
            article,
            {"status": ArticleStatus.ARCHIVED.value, "updated_at": utc_now()},
        )
        logger.info("Article archived", extra={"article_id": article.id, "actor_id": actor.id})
        return article

    def _published_updates(self, article: Article) -> dict[str, Any]:
        now = utc_now()
        updates: dict[str, Any] = {"status": ArticleStatus.PUBLISHED.value, "updated_at": now}
        if article.published_at is None:
            updates["published_at"] = now
        return updates

    async def approve_revision(self, revision_id: str, actor: Actor) -> PendingRevision:
        """Make a pending revision the article's live content."""
        _require_moderator(actor, "approve_revision")
        return await self._decide(revision_id, actor, APPROVE)

    async def reject_revision(self, revision_id: str, actor: Actor) -> PendingRevision:
        """Discard a pending revision; the live content stays as it was."""
        _require_moderator(actor, "reject_revision")
        return await self._decide(revision_id, actor, REJECT)

    async def _decide(self, revision_id: str, actor: Actor, action: str) -> PendingRevision:
        revision = await self.get_revision(revision_id)
        target = RevisionStatus.APPROVED if action == APPROVE else RevisionStatus.REJECTED
        ensure_transition(revision_status(revision.status), target)
        article = await self.get_article(revision.article_id)

        if self.store.supports_transactions:
            async with self.store.transaction():
                await self._apply(action, revision, article, actor.id, _WriteCounter())
        else:
            await self._apply_with_intent(action, revision, article, actor)

        logger.info(
            "Revision decided",
            extra={
                "action": action,
                "revision_id": revision.id,
                "article_id": article.id,
                "actor_id": actor.id,
            },
        )
        return revision

    async def _apply_with_intent(
        self,
        action: str,
        revision: PendingRevision,
        article: Article,
        actor: Actor,
    ) -> None:
        intent = await self.store.add_intent(
            ModerationIntentCreateDTO(
                id=generate_cuid(),
                action=action,
                revision_id=revision.id,
                article_id=article.id,
                actor=actor.name,
                actor_id=actor.id,
                created_at=utc_now(),
            )
        )
        counter = _WriteCounter()
        try:
            await self._apply(action, revision, article, actor.id, counter)
        except Exception as exc:
            if counter.writes == 0:
                await self.store.delete_intent(intent)
                raise
            logger.error(
                "Moderation write only partially applied",
                extra={
                    "intent_id": intent.id,
                    "action": action,
                    "revision_id": revision.id,
                    "article_id": article.id,
                    "writes_done": counter.writes,
                },
            )
            raise PartialCommitError(intent.id, action, revision.id) from exc
        await self.store.delete_intent(intent)

    async def _apply(
        self,
        action: str,
        revision: PendingRevision,
        article: Article,
        decided_by: str,
        counter: _WriteCounter,
    ) -> None:
        """Apply a decision step by step, skipping steps that already landed."""
        if action == APPROVE:
            if not await self._approval_landed(revision, article):
                status = article_status(article.status)
                if status != ArticleStatus.PUBLISHED:
                    ensure_transition(status, ArticleStatus.PUBLISHED)
                version = await self._approval_snapshot(revision, article, counter)
                await self.versions.adopt(article, version, extra_updates=self._published_updates(article))
                counter.writes += 1
            target = RevisionStatus.APPROVED
        else:
            status = article_status(article.status)
            if status != ArticleStatus.PUBLISHED:
                ensure_transition(status, ArticleStatus.PUBLISHED)
                await self.store.patch_article(article, self._published_updates(article))
                counter.writes += 1
            target = RevisionStatus.REJECTED

        await self.store.patch_revision(
            revision,
            {"status": target.value, "decided_by": decided_by, "decided_at": utc_now()},
        )
        counter.writes += 1

    async def _approval_snapshot(
        self,
        revision: PendingRevision,
        article: Article,
        counter: _WriteCounter,
    ) -> ArticleVersion:
        """Reuse the snapshot an interrupted approval left behind, else write one."""
        for version in reversed(await self.versions.unadopted_versions(article)):
            if version.content == revision.content and version.title == revision.title:
                logger.info(
                    "Adopting version left by an interrupted approval",
                    extra={"revision_id": revision.id, "version_id": version.id},
                )
                return version

        version = await self.versions.create_snapshot(
            article,
            revision.content,
            Actor(id=revision.author_id, name=revision.author),
            revision.changes or f"Approved revision {revision.sequence}",
            title=revision.title,
        )
        counter.writes += 1
        return version

    async def _approval_landed(self, revision: PendingRevision, article: Article) -> bool:
        if article_status(article.status) != ArticleStatus.PUBLISHED or not article.current_version_id:
            return False
        current = await self.store.get_version(article.current_version_id)
        return (
            current is not None
            and current.content == revision.content
            and article.title == revision.title
            and current.id != revision.base_version_id
        )

    async def replay_pending_intents(self) -> ReplayReport:
        """Finish every approve/reject that was interrupted halfway."""
        report = ReplayReport()
        for intent in await self.store.list_intents():
            try:
                await self._replay(intent, report)
            except Exception:
                logger.exception(
                    "Moderation intent replay failed",
                    extra={"intent_id": intent.id, "revision_id": intent.revision_id},
                )
                report.failed.append(intent.id)
        return report

    async def _replay(self, intent: ModerationIntent, report: ReplayReport) -> None:
        revision = await self.store.get_revision(intent.revision_id)
        article = await self.store.get_article(intent.article_id)
        if (
            revision is None
            or article is None
            or revision_status(revision.status) != RevisionStatus.PENDING
        ):
            await self.store.delete_intent(intent)
            report.discarded.append(intent.id)
            logger.info(
                "Moderation intent discarded",
                extra={"intent_id": intent.id, "revision_id": intent.revision_id},
            )
            return

        await self._apply(intent.action, revision, article, intent.actor_id, _WriteCounter())
        await self.store.delete_intent(intent)
        report.replayed.append(intent.id)
        logger.info(
            "Moderation intent replayed",
            extra={"intent_id": intent.id, "action": intent.action, "revision_id": revision.id},
        )

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_article(self, article_id: str, actor: Actor) -> None:
        """Delete an article with all its versions and revisions."""
        _require_moderator(actor, "delete_article")
        article = await self.get_article(article_id)
        async with self._atomic():
            await self.store.delete_article(article)
        logger.info("Article deleted", extra={"article_id": article_id, "actor_id": actor.id})

    async def delete_revision(self, revision_id: str, actor: Actor) -> None:
        """Delete one revision record; the article and its history are left as they are."""
        _require_moderator(actor, "delete_revision")
        revision = await self.get_revision(revision_id)
        await self.store.delete_revision(revision)
        logger.info(
            "Revision deleted",
            extra={"revision_id": revision_id, "article_id": revision.article_id, "actor_id": actor.id},
        )
