"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from backend.app.models.documents import Document, DocumentStatus, DocumentType, UserProfile


@dataclass
class NewDocument:
    """Fields supplied when a document is first uploaded."""

    filename: str
    subject: str
    semester: str
    branch: str
    document_type: DocumentType
    file_path: str
    uploaded_by: str


class ModerationAction(str, Enum):
    """Moderation transition recorded in the intent log."""

    approve = "approve"
    reject = "reject"


class IntentState(str, Enum):
    """Progress of a recorded moderation intent."""

    pending = "pending"
    done = "done"


@dataclass
class ModerationIntent:
    """Intended moderation transition, recorded before any step runs."""

    intent_id: str
    document_id: str
    action: ModerationAction
    source_path: str
    target_path: str | None
    state: IntentState
    created_at: datetime
    completed_at: datetime | None = None


class DocumentRepository(Protocol):
    """Catalog operations over the documents table."""

    async def list_by_status(
        self, status: DocumentStatus, *, newest_first: bool = False
    ) -> list[Document]:
        """List documents with the given status ordered by upload time."""
        ...

    async def get(self, document_id: str, status: DocumentStatus | None = None) -> Document | None:
        """Get a document by id, optionally requiring a status."""
        ...

    async def create(self, new: NewDocument) -> Document:
        """Insert a pending document and return it."""
        ...

    async def mark_approved(
        self, document_id: str, file_path: str, approved_at: datetime
    ) -> Document | None:
        """Set status=approved, the new file path and the approval time.

        Returns:
            Updated document, or None if the row does not exist. An already
            approved document is returned as stored, without changes.
        """
        ...

    async def delete(self, document_id: str) -> bool:
        """Delete a document row.

        Returns:
            True if a row was deleted
        """
        ...


class ProfileRepository(Protocol):
    """Read access to user profiles."""

    async def get(self, user_id: str) -> UserProfile | None:
        """Get a profile by user id."""
        ...


class RoleRepository(Protocol):
    """Read access to the role table."""

    async def has_role(self, user_id: str, role: str) -> bool:
        """Check whether a user holds a role."""
        ...


class IntentLog(Protocol):
    """Durable log of moderation intents."""

    async def record(
        self,
        document_id: str,
        action: ModerationAction,
        source_path: str,
        target_path: str | None,
    ) -> ModerationIntent:
        """Record a pending intent."""
        ...

    async def complete(self, intent_id: str, completed_at: datetime) -> None:
        """Mark an intent as done."""
        ...

    async def list_pending(self) -> list[ModerationIntent]:
        """List intents not yet completed, oldest first."""
        ...
