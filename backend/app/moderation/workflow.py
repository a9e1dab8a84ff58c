"""Moderation workflow: pending -> approved | rejected.

Approve relocates the blob from ``pending/...`` to ``approved/...`` and
updates the catalog row; reject deletes blob and row. Neither touches more
than one store atomically, so every transition is written to the intent log
before its first step and marked done after its last. Each step is safe to
repeat, which lets ``reconcile`` finish transitions interrupted by a crash.

There is no locking: two moderators acting on the same document race, and
the last catalog write wins.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from backend.app.db.repositories import (
    DocumentRepository,
    IntentLog,
    ModerationAction,
    ModerationIntent,
    ProfileRepository,
)
from backend.app.errors import AppError, CatalogError, NotFoundError
from backend.app.models.documents import (
    Document,
    DocumentStatus,
    PendingDocument,
    Uploader,
    approved_path_for,
)
from backend.app.retry import RetryOptions, run_query
from backend.app.storage.blobs import BlobStore
from backend.app.utils.metrics import moderation_transitions_total

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ReconcileResult:
    """Outcome of one reconcile run."""

    completed: int = 0
    failed: list[str] = field(default_factory=list)


class ModerationWorkflow:
    """Admin-driven state transitions for uploaded documents."""

    def __init__(
        self,
        documents: DocumentRepository,
        profiles: ProfileRepository,
        blobs: BlobStore,
        intents: IntentLog,
        retry_options: RetryOptions | None = None,
        sleep_fn: Callable[[float], Awaitable[Any]] | None = None,
        now_fn: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._documents = documents
        self._profiles = profiles
        self._blobs = blobs
        self._intents = intents
        self._retry_options = retry_options
        self._sleep_fn = sleep_fn
        self._now = now_fn

    async def _query(self, fn: Callable[[], Awaitable[Any]], name: str) -> Any:
        return await run_query(fn, self._retry_options, sleep_fn=self._sleep_fn, name=name)

    async def list_pending(self) -> list[PendingDocument]:
        """Pending documents, newest first, with uploader profile attached."""
        pending: list[Document] = await self._query(
            lambda: self._documents.list_by_status(DocumentStatus.pending, newest_first=True),
            "list_pending_documents",
        )

        hydrated = []
        for doc in pending:
            try:
                profile = await self._query(
                    lambda uid=doc.uploaded_by: self._profiles.get(uid), "get_profile"
                )
            except CatalogError as e:
                logger.warning("Profile lookup failed for %s: %s", doc.uploaded_by, e.message)
                profile = None

            uploader = (
                Uploader(email=profile.email, full_name=profile.full_name) if profile else Uploader()
            )
            hydrated.append(PendingDocument(**doc.model_dump(), profile=uploader))

        return hydrated

    async def _get_pending(self, document_id: str) -> Document:
        doc = await self._query(
            lambda: self._documents.get(document_id, DocumentStatus.pending), "get_pending_document"
        )
        if doc is None:
            raise NotFoundError("Document not found")
        return doc

    async def approve(self, document_id: str) -> Document:
        """Approve a pending document and move its blob to the approved folder.

        Raises:
            NotFoundError: No pending document with this id
        """
        doc = await self._get_pending(document_id)

        try:
            target = approved_path_for(doc.file_path)
        except ValueError as e:
            raise AppError(str(e), code="INCONSISTENT_PATH") from e

        intent = await self._intents.record(
            doc.id, ModerationAction.approve, doc.file_path, target
        )
        try:
            approved = await self._apply_approve(intent)
        except Exception:
            moderation_transitions_total.labels(action="approve", outcome="error").inc()
            logger.exception("Error approving document %s (intent %s left pending)", doc.id, intent.intent_id)
            raise

        moderation_transitions_total.labels(action="approve", outcome="success").inc()
        return approved

    async def reject(self, document_id: str) -> None:
        """Reject a pending document: delete its blob and its catalog row.

        Raises:
            NotFoundError: No pending document with this id
        """
        doc = await self._get_pending(document_id)

        intent = await self._intents.record(doc.id, ModerationAction.reject, doc.file_path, None)
        try:
            await self._apply_reject(intent)
        except Exception:
            moderation_transitions_total.labels(action="reject", outcome="error").inc()
            logger.exception("Error rejecting document %s (intent %s left pending)", doc.id, intent.intent_id)
            raise

        moderation_transitions_total.labels(action="reject", outcome="success").inc()

    async def reconcile(self) -> ReconcileResult:
        """Finish every intent still marked pending.

        An intent that fails is logged and left pending for the next run;
        the remaining intents are still replayed.
        """
        result = ReconcileResult()
        for intent in await self._intents.list_pending():
            logger.info(
                "Reconciling %s intent %s for document %s",
                intent.action.value,
                intent.intent_id,
                intent.document_id,
            )
            try:
                await self._replay(intent)
            except Exception as e:
                moderation_transitions_total.labels(action=intent.action.value, outcome="error").inc()
                logger.error(
                    "Failed to reconcile intent %s: %s",
                    intent.intent_id,
                    e,
                    extra={
                        "structured": {
                            "intent_id": intent.intent_id,
                            "document_id": intent.document_id,
                            "action": intent.action.value,
                        }
                    },
                )
                result.failed.append(intent.intent_id)
                continue

            moderation_transitions_total.labels(action=intent.action.value, outcome="reconciled").inc()
            result.completed += 1
        return result

    async def _replay(self, intent: ModerationIntent) -> None:
        if intent.action == ModerationAction.reject:
            await self._apply_reject(intent)
            return

        current = await self._query(lambda: self._documents.get(intent.document_id), "get_document")
        if current is None:
            logger.warning(
                "Document %s vanished before approval finished; dropping intent",
                intent.document_id,
            )
            await self._intents.complete(intent.intent_id, self._now())
            return

        await self._apply_approve(intent)

    async def _relocate_blob(self, source: str, target: str) -> None:
        # Copy only when the target is missing so a replay never re-downloads
        # a source that was already removed.
        if not await self._blobs.exists(target):
            data = await self._blobs.download(source)
            await self._blobs.upload(target, data)
        await self._blobs.remove([source])

    async def _apply_approve(self, intent: ModerationIntent) -> Document:
        target = intent.target_path
        if target is None:
            raise AppError(
                f"Approve intent {intent.intent_id} has no target path", code="INCONSISTENT_PATH"
            )

        await self._relocate_blob(intent.source_path, target)

        approved = await self._query(
            lambda: self._documents.mark_approved(intent.document_id, target, self._now()),
            "approve_document",
        )
        if approved is None:
            raise NotFoundError("Document not found")

        await self._intents.complete(intent.intent_id, self._now())
        logger.info(
            "Document approved",
            extra={
                "structured": {
                    "document_id": intent.document_id,
                    "from": intent.source_path,
                    "to": intent.target_path,
                }
            },
        )
        return approved

    async def _apply_reject(self, intent: ModerationIntent) -> None:
        await self._blobs.remove([intent.source_path])
        await self._query(lambda: self._documents.delete(intent.document_id), "delete_document")
        await self._intents.complete(intent.intent_id, self._now())
        logger.info(
            "Document rejected and removed",
            extra={"structured": {"document_id": intent.document_id, "path": intent.source_path}},
        )
