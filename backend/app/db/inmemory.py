"""In-memory implementations of repository interfaces."""

import uuid
from datetime import datetime, timezone

from backend.app.db.repositories import (
    IntentState,
    ModerationAction,
    ModerationIntent,
    NewDocument,
)
from backend.app.models.documents import Document, DocumentStatus, UserProfile


class InMemoryDocumentRepository:
    """In-memory implementation of DocumentRepository."""

    def __init__(self, documents: list[Document] | None = None) -> None:
        self._documents: dict[str, Document] = {}
        for doc in documents or []:
            self._documents[doc.id] = doc

    async def list_by_status(
        self, status: DocumentStatus, *, newest_first: bool = False
    ) -> list[Document]:
        """List documents with the given status ordered by upload time."""
        matches = [d for d in self._documents.values() if d.status == status]
        return sorted(matches, key=lambda d: d.uploaded_at, reverse=newest_first)

    async def get(self, document_id: str, status: DocumentStatus | None = None) -> Document | None:
        """Get a document by id, optionally requiring a status."""
        doc = self._documents.get(document_id)
        if doc is None or (status is not None and doc.status != status):
            return None
        return doc

    async def create(self, new: NewDocument) -> Document:
        """Insert a pending document."""
        doc = Document(
            id=str(uuid.uuid4()),
            filename=new.filename,
            subject=new.subject,
            semester=new.semester,
            branch=new.branch,
            document_type=new.document_type,
            file_path=new.file_path,
            status=DocumentStatus.pending,
            uploaded_by=new.uploaded_by,
            uploaded_at=datetime.now(timezone.utc),
        )
        self._documents[doc.id] = doc
        return doc

    async def mark_approved(
        self, document_id: str, file_path: str, approved_at: datetime
    ) -> Document | None:
        """Approve a document in place."""
        doc = self._documents.get(document_id)
        if doc is None or doc.status == DocumentStatus.approved:
            return doc

        updated = doc.model_copy(
            update={
                "status": DocumentStatus.approved,
                "file_path": file_path,
                "approved_at": approved_at,
            }
        )
        self._documents[document_id] = updated
        return updated

    async def delete(self, document_id: str) -> bool:
        """Delete a document row."""
        return self._documents.pop(document_id, None) is not None


class InMemoryProfileRepository:
    """In-memory implementation of ProfileRepository."""

    def __init__(self, profiles: list[UserProfile] | None = None) -> None:
        self._profiles = {p.id: p for p in profiles or []}

    async def get(self, user_id: str) -> UserProfile | None:
        """Get a profile by user id."""
        return self._profiles.get(user_id)


class InMemoryRoleRepository:
    """In-memory implementation of RoleRepository."""

    def __init__(self, roles: dict[str, set[str]] | None = None) -> None:
        self._roles = roles or {}

    async def has_role(self, user_id: str, role: str) -> bool:
        """Check whether a user holds a role."""
        return role in self._roles.get(user_id, set())


class InMemoryIntentLog:
    """In-memory implementation of IntentLog."""

    def __init__(self) -> None:
        self._intents: dict[str, ModerationIntent] = {}

    async def record(
        self,
        document_id: str,
        action: ModerationAction,
        source_path: str,
        target_path: str | None,
    ) -> ModerationIntent:
        """Record a pending intent."""
        intent = ModerationIntent(
            intent_id=str(uuid.uuid4()),
            document_id=document_id,
            action=action,
            source_path=source_path,
            target_path=target_path,
            state=IntentState.pending,
            created_at=datetime.now(timezone.utc),
        )
        self._intents[intent.intent_id] = intent
        return intent

    async def complete(self, intent_id: str, completed_at: datetime) -> None:
        """Mark an intent as done."""
        intent = self._intents.get(intent_id)
        if intent is None:
            return
        intent.state = IntentState.done
        intent.completed_at = completed_at

    async def list_pending(self) -> list[ModerationIntent]:
        """List intents not yet completed, oldest first."""
        pending = [i for i in self._intents.values() if i.state == IntentState.pending]
        return sorted(pending, key=lambda i: i.created_at)
