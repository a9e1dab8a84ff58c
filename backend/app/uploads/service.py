"""Student uploads: validate, store the blob under ``pending/``, insert the row."""

import logging
import os
import secrets
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from backend.app.db.repositories import DocumentRepository, NewDocument
from backend.app.errors import InputValidationError
from backend.app.models.documents import PENDING_FOLDER, Document, UploadForm
from backend.app.retry import RetryOptions, run_query
from backend.app.storage.blobs import BlobStore

logger = logging.getLogger(__name__)


def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot ("" when there is none)."""
    return os.path.splitext(filename)[1].lstrip(".").lower()


def pending_path_for(user_id: str, filename: str, now_ms: int | None = None) -> str:
    """Build ``pending/{user_id}/{timestamp_ms}-{random}.{ext}``."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{PENDING_FOLDER}{user_id}/{stamp}-{secrets.token_hex(4)}.{file_extension(filename)}"


class UploadService:
    """Accepts document submissions into the moderation queue."""

    def __init__(
        self,
        documents: DocumentRepository,
        blobs: BlobStore,
        max_bytes: int = 20 * 1024 * 1024,
        allowed_extensions: list[str] | None = None,
        retry_options: RetryOptions | None = None,
        sleep_fn: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        self._documents = documents
        self._blobs = blobs
        self._max_bytes = max_bytes
        self._allowed = {ext.lower() for ext in (allowed_extensions or ["pdf", "doc", "docx"])}
        self._retry_options = retry_options
        self._sleep_fn = sleep_fn

    def validate(self, form: dict[str, Any], filename: str, size: int) -> UploadForm:
        """Validate metadata and file constraints.

        Raises:
            InputValidationError: With one message per offending field
        """
        field_errors: dict[str, str] = {}
        parsed: UploadForm | None = None

        try:
            parsed = UploadForm.model_validate(form)
        except ValidationError as e:
            for err in e.errors():
                field = str(err["loc"][0]) if err["loc"] else "form"
                field_errors.setdefault(field, err["msg"])

        if not filename:
            field_errors["file"] = "Please select a file"
        elif file_extension(filename) not in self._allowed:
            allowed = ", ".join(f".{ext}" for ext in sorted(self._allowed))
            field_errors["file"] = f"Only {allowed} files are allowed"
        elif size > self._max_bytes:
            field_errors["file"] = f"File size must be less than {self._max_bytes / (1024 * 1024):g}MB"

        if field_errors or parsed is None:
            raise InputValidationError("Invalid upload", field_errors)
        return parsed

    async def submit(
        self,
        user_id: str,
        form: dict[str, Any],
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> Document:
        """Store an upload as a pending document.

        The blob is written first; if the catalog insert then fails the blob
        is removed again so no orphan stays behind.
        """
        parsed = self.validate(form, filename, len(data))
        path = pending_path_for(user_id, filename)

        await self._blobs.upload(path, data, content_type)

        new = NewDocument(
            filename=filename,
            subject=parsed.subject,
            semester=parsed.semester,
            branch=parsed.branch,
            document_type=parsed.document_type,
            file_path=path,
            uploaded_by=user_id,
        )
        try:
            doc = await run_query(
                lambda: self._documents.create(new),
                self._retry_options,
                sleep_fn=self._sleep_fn,
                name="insert_document",
            )
        except Exception:
            await self._blobs.remove([path])
            raise

        logger.info(
            "Document uploaded for review",
            extra={"structured": {"document_id": doc.id, "path": path, "user_id": user_id}},
        )
        return doc
