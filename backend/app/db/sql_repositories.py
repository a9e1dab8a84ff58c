"""SQL implementations of repository interfaces."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.db.models import DocumentRow, ModerationIntentRow, Profile, UserRole
from backend.app.db.repositories import (
    IntentState,
    ModerationAction,
    ModerationIntent,
    NewDocument,
)
from backend.app.models.documents import Document, DocumentStatus, UserProfile


def _to_document(row: DocumentRow) -> Document:
    return Document.model_validate(row)


def _to_intent(row: ModerationIntentRow) -> ModerationIntent:
    return ModerationIntent(
        intent_id=row.id,
        document_id=row.document_id,
        action=ModerationAction(row.action),
        source_path=row.source_path,
        target_path=row.target_path,
        state=IntentState(row.state),
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


class SqlDocumentRepository:
    """SQL implementation of DocumentRepository.

    Each call opens its own session so a retried call starts clean.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_by_status(
        self, status: DocumentStatus, *, newest_first: bool = False
    ) -> list[Document]:
        """List documents with the given status ordered by upload time."""
        order = DocumentRow.uploaded_at.desc() if newest_first else DocumentRow.uploaded_at.asc()
        query = select(DocumentRow).where(DocumentRow.status == status.value).order_by(order)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return [_to_document(row) for row in result.scalars().all()]

    async def get(self, document_id: str, status: DocumentStatus | None = None) -> Document | None:
        """Get a document by id, optionally requiring a status."""
        query = select(DocumentRow).where(DocumentRow.id == document_id)
        if status is not None:
            query = query.where(DocumentRow.status == status.value)

        async with self._session_factory() as session:
            row = (await session.execute(query)).scalar_one_or_none()
            return _to_document(row) if row is not None else None

    async def create(self, new: NewDocument) -> Document:
        """Insert a pending document."""
        row = DocumentRow(
            filename=new.filename,
            subject=new.subject,
            semester=new.semester,
            branch=new.branch,
            document_type=new.document_type.value,
            file_path=new.file_path,
            status=DocumentStatus.pending.value,
            uploaded_by=new.uploaded_by,
        )

        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _to_document(row)

    async def mark_approved(
        self, document_id: str, file_path: str, approved_at: datetime
    ) -> Document | None:
        """Set status=approved, the new file path and the approval time.

        Only pending rows are updated; an approved row comes back unchanged.
        """
        async with self._session_factory() as session:
            await session.execute(
                update(DocumentRow)
                .where(
                    DocumentRow.id == document_id,
                    DocumentRow.status == DocumentStatus.pending.value,
                )
                .values(
                    status=DocumentStatus.approved.value,
                    file_path=file_path,
                    approved_at=approved_at,
                )
            )
            await session.commit()

            row = (
                await session.execute(select(DocumentRow).where(DocumentRow.id == document_id))
            ).scalar_one_or_none()
            return _to_document(row) if row is not None else None

    async def delete(self, document_id: str) -> bool:
        """Delete a document row."""
        async with self._session_factory() as session:
            result = await session.execute(delete(DocumentRow).where(DocumentRow.id == document_id))
            await session.commit()
            return bool(result.rowcount)


class SqlProfileRepository:
    """SQL implementation of ProfileRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, user_id: str) -> UserProfile | None:
        """Get a profile by user id."""
        async with self._session_factory() as session:
            row = await session.get(Profile, user_id)
            return UserProfile.model_validate(row) if row is not None else None


class SqlRoleRepository:
    """SQL implementation of RoleRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def has_role(self, user_id: str, role: str) -> bool:
        """Check whether a user holds a role."""
        query = select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
        async with self._session_factory() as session:
            return (await session.execute(query)).first() is not None


class SqlIntentLog:
    """SQL implementation of IntentLog."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        document_id: str,
        action: ModerationAction,
        source_path: str,
        target_path: str | None,
    ) -> ModerationIntent:
        """Record a pending intent."""
        row = ModerationIntentRow(
            document_id=document_id,
            action=action.value,
            source_path=source_path,
            target_path=target_path,
            state=IntentState.pending.value,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _to_intent(row)

    async def complete(self, intent_id: str, completed_at: datetime) -> None:
        """Mark an intent as done."""
        async with self._session_factory() as session:
            await session.execute(
                update(ModerationIntentRow)
                .where(ModerationIntentRow.id == intent_id)
                .values(state=IntentState.done.value, completed_at=completed_at)
            )
            await session.commit()

    async def list_pending(self) -> list[ModerationIntent]:
        """List intents not yet completed, oldest first."""
        query = (
            select(ModerationIntentRow)
            .where(ModerationIntentRow.state == IntentState.pending.value)
            .order_by(ModerationIntentRow.created_at.asc())
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [_to_intent(row) for row in result.scalars().all()]
