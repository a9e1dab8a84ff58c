"""Admin moderation endpoints - /admin/..."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend.app.api.deps import get_moderation_workflow, require_admin
from backend.app.db.context import RequestContext
from backend.app.models.documents import Document, PendingDocument
from backend.app.moderation.workflow import ModerationWorkflow

router = APIRouter(prefix="/admin", tags=["admin"])


class RejectResponse(BaseModel):
    """Response for POST /admin/documents/{id}/reject."""

    document_id: str
    status: str = "rejected"


class ReconcileResponse(BaseModel):
    """Response for POST /admin/moderation/reconcile."""

    completed: int
    failed: list[str] = Field(default_factory=list)


@router.get("/documents/pending", response_model=list[PendingDocument])
async def list_pending(
    _admin: Annotated[RequestContext, Depends(require_admin)],
    workflow: Annotated[ModerationWorkflow, Depends(get_moderation_workflow)],
) -> list[PendingDocument]:
    """Moderation queue, newest first."""
    return await workflow.list_pending()


@router.post("/documents/{document_id}/approve", response_model=Document)
async def approve(
    document_id: str,
    _admin: Annotated[RequestContext, Depends(require_admin)],
    workflow: Annotated[ModerationWorkflow, Depends(get_moderation_workflow)],
) -> Document:
    return await workflow.approve(document_id)


@router.post("/documents/{document_id}/reject", response_model=RejectResponse)
async def reject(
    document_id: str,
    _admin: Annotated[RequestContext, Depends(require_admin)],
    workflow: Annotated[ModerationWorkflow, Depends(get_moderation_workflow)],
) -> RejectResponse:
    await workflow.reject(document_id)
    return RejectResponse(document_id=document_id)


@router.post("/moderation/reconcile", response_model=ReconcileResponse)
async def reconcile(
    _admin: Annotated[RequestContext, Depends(require_admin)],
    workflow: Annotated[ModerationWorkflow, Depends(get_moderation_workflow)],
) -> ReconcileResponse:
    """Finish moderation transitions interrupted part-way."""
    result = await workflow.reconcile()
    return ReconcileResponse(completed=result.completed, failed=result.failed)
