"""Test data builders shared across suites."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from backend.app.db.inmemory import (
    InMemoryDocumentRepository,
    InMemoryIntentLog,
    InMemoryProfileRepository,
    InMemoryRoleRepository,
)
from backend.app.models.documents import Document, DocumentStatus, DocumentType
from backend.app.storage.blobs import InMemoryBlobStore

BASE_TIME = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


def make_document(
    doc_id: str,
    *,
    status: DocumentStatus = DocumentStatus.approved,
    uploaded_by: str = "u1",
    subject: str = "Data Structures",
    semester: str = "3",
    branch: str = "CSE",
    document_type: DocumentType = DocumentType.notes,
    filename: str | None = None,
    minutes: int = 0,
) -> Document:
    """Build a catalog document whose path matches its status."""
    filename = filename or f"{doc_id}.pdf"
    return Document(
        id=doc_id,
        filename=filename,
        subject=subject,
        semester=semester,
        branch=branch,
        document_type=document_type,
        file_path=f"{status.folder}{uploaded_by}/{filename}",
        status=status,
        uploaded_by=uploaded_by,
        uploaded_at=BASE_TIME + timedelta(minutes=minutes),
        approved_at=BASE_TIME if status == DocumentStatus.approved else None,
    )


class SleepRecorder:
    """Injectable sleep that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# Dev-format bearer headers (no JWT secret configured in tests)
STUDENT = {"Authorization": "Bearer student:student@vtumitra.local"}
ADMIN = {"Authorization": "Bearer padmesh:padmesh@vtumitra.local"}


@dataclass
class InMemoryServices:
    """In-memory stores and fake clients wired into the app under test."""

    documents: InMemoryDocumentRepository = field(default_factory=InMemoryDocumentRepository)
    profiles: InMemoryProfileRepository = field(default_factory=InMemoryProfileRepository)
    roles: InMemoryRoleRepository = field(default_factory=InMemoryRoleRepository)
    intents: InMemoryIntentLog = field(default_factory=InMemoryIntentLog)
    blobs: InMemoryBlobStore = field(default_factory=InMemoryBlobStore)
    completions: AsyncMock = field(default_factory=AsyncMock)
    email: AsyncMock = field(default_factory=AsyncMock)
