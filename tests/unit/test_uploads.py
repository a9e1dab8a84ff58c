"""Unit tests for the upload service."""

import re
from unittest.mock import AsyncMock

import pytest

from backend.app.db.inmemory import InMemoryDocumentRepository
from backend.app.errors import CatalogError, InputValidationError
from backend.app.models.documents import DocumentStatus, DocumentType
from backend.app.storage.blobs import InMemoryBlobStore
from backend.app.uploads.service import UploadService, file_extension, pending_path_for

VALID_FORM = {"subject": "  Data Structures ", "semester": "3", "branch": "CSE", "document_type": "Notes"}


@pytest.fixture
def documents() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def service(documents: InMemoryDocumentRepository, blobs: InMemoryBlobStore) -> UploadService:
    return UploadService(documents, blobs, max_bytes=1024)


def test_pending_path_layout() -> None:
    path = pending_path_for("u1", "My Notes.PDF", now_ms=1700000000000)
    assert re.fullmatch(r"pending/u1/1700000000000-[0-9a-f]{8}\.pdf", path)


def test_file_extension() -> None:
    assert file_extension("a.b.DOCX") == "docx"
    assert file_extension("README") == ""


@pytest.mark.asyncio
async def test_submit_stores_blob_then_pending_row(
    service: UploadService, documents: InMemoryDocumentRepository, blobs: InMemoryBlobStore
) -> None:
    doc = await service.submit("u1", VALID_FORM, "ds.pdf", b"%PDF")

    assert doc.status == DocumentStatus.pending
    assert doc.subject == "Data Structures"
    assert doc.document_type == DocumentType.notes
    assert doc.uploaded_by == "u1"
    assert doc.file_path.startswith("pending/u1/")
    assert blobs.blobs[doc.file_path] == b"%PDF"
    assert await documents.get(doc.id, DocumentStatus.pending) == doc


@pytest.mark.parametrize(
    "form,field",
    [
        ({**VALID_FORM, "subject": "D"}, "subject"),
        ({**VALID_FORM, "subject": "x" * 101}, "subject"),
        ({**VALID_FORM, "semester": " "}, "semester"),
        ({**VALID_FORM, "branch": "C"}, "branch"),
        ({**VALID_FORM, "document_type": "Slides"}, "document_type"),
    ],
)
def test_invalid_metadata_reports_field(service: UploadService, form: dict, field: str) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        service.validate(form, "ds.pdf", 10)

    assert field in exc_info.value.field_errors


def test_wrong_extension(service: UploadService) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        service.validate(VALID_FORM, "ds.exe", 10)

    assert "Only .doc, .docx, .pdf files are allowed" == exc_info.value.field_errors["file"]


def test_too_large(service: UploadService) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        service.validate(VALID_FORM, "ds.pdf", 2048)

    assert "file" in exc_info.value.field_errors


def test_all_field_errors_reported_together(service: UploadService) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        service.validate({"subject": "", "semester": "", "branch": "", "document_type": ""}, "", 0)

    assert set(exc_info.value.field_errors) == {"subject", "semester", "branch", "document_type", "file"}


@pytest.mark.asyncio
async def test_invalid_upload_stores_nothing(service: UploadService, blobs: InMemoryBlobStore) -> None:
    with pytest.raises(InputValidationError):
        await service.submit("u1", VALID_FORM, "ds.txt", b"text")

    assert blobs.blobs == {}


@pytest.mark.asyncio
async def test_catalog_failure_removes_blob(blobs: InMemoryBlobStore, fast_retry) -> None:
    documents = AsyncMock()
    documents.create.side_effect = RuntimeError('relation "documents" does not exist')
    service = UploadService(documents, blobs, retry_options=fast_retry)

    with pytest.raises(CatalogError):
        await service.submit("u1", VALID_FORM, "ds.pdf", b"%PDF")

    assert blobs.blobs == {}
