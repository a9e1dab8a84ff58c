"""Document endpoints - POST /documents, GET /documents/{id}/download."""

import mimetypes
import re
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from backend.app.api.auth import get_current_context
from backend.app.api.deps import (
    get_admin_policy,
    get_blob_store,
    get_document_repository,
    get_retry_options,
    get_upload_service,
)
from backend.app.auth.admin import AdminPolicy
from backend.app.db.context import RequestContext
from backend.app.db.repositories import DocumentRepository
from backend.app.errors import NotFoundError
from backend.app.models.documents import Document, DocumentStatus
from backend.app.retry import RetryOptions, run_query
from backend.app.storage.blobs import BlobStore
from backend.app.uploads.service import UploadService

router = APIRouter(prefix="/documents", tags=["documents"])

_UNSAFE_HEADER_CHARS = re.compile(r'[^\x20-\x7e]|["\\]')


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the UTF-8 name (RFC 6266)."""
    fallback = _UNSAFE_HEADER_CHARS.sub("_", filename).strip() or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.post("", response_model=Document, status_code=status.HTTP_201_CREATED)
async def upload_document(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    uploads: Annotated[UploadService, Depends(get_upload_service)],
    file: Annotated[UploadFile, File()],
    subject: Annotated[str, Form()] = "",
    semester: Annotated[str, Form()] = "",
    branch: Annotated[str, Form()] = "",
    document_type: Annotated[str, Form()] = "",
) -> Document:
    """Submit a document for moderation.

    Field problems come back as 422 with one message per field.
    """
    data = await file.read()
    return await uploads.submit(
        ctx.user_id,
        {
            "subject": subject,
            "semester": semester,
            "branch": branch,
            "document_type": document_type,
        },
        file.filename or "",
        data,
        file.content_type,
    )


@router.get("/{document_id}/download")
async def download_document(
    document_id: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
    blobs: Annotated[BlobStore, Depends(get_blob_store)],
    policy: Annotated[AdminPolicy, Depends(get_admin_policy)],
    retry_options: Annotated[RetryOptions, Depends(get_retry_options)],
) -> Response:
    """Stream a document's bytes.

    Approved documents are visible to every signed-in user; pending ones only
    to admins. Invisible documents are reported as missing.
    """
    doc = await run_query(
        lambda: documents.get(document_id), retry_options, name="get_document"
    )
    if doc is None:
        raise NotFoundError("Document not found")
    if doc.status != DocumentStatus.approved and not await policy.is_admin(ctx):
        raise NotFoundError("Document not found")

    data = await blobs.download(doc.file_path)
    media_type = mimetypes.guess_type(doc.filename)[0] or "application/octet-stream"
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(doc.filename)},
    )
