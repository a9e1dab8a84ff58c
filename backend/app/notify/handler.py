"""Notification handler: e-mail an approved document to a recipient."""

import base64
import logging
from dataclasses import replace

from backend.app.db.repositories import DocumentRepository
from backend.app.errors import AppError, InputValidationError, NotFoundError, UpstreamError
from backend.app.models.documents import DocumentStatus
from backend.app.models.notifications import EmailAttachment, OutgoingEmail
from backend.app.notify.email_client import EmailClient
from backend.app.notify.templates import document_email_subject, render_document_email
from backend.app.retry import RetryOptions, run_query
from backend.app.storage.blobs import BlobStore
from backend.app.utils.metrics import emails_sent_total

logger = logging.getLogger(__name__)


class NotificationHandler:
    """Loads an approved document and sends it as an e-mail attachment."""

    def __init__(
        self,
        documents: DocumentRepository,
        blobs: BlobStore,
        email: EmailClient,
        sender: str,
        retry_options: RetryOptions | None = None,
    ) -> None:
        self._documents = documents
        self._blobs = blobs
        self._email = email
        self._sender = sender
        # Every failure here is final; only the per-attempt timeout is kept.
        self._lookup_options = replace(retry_options or RetryOptions(), max_retries=1)

    async def send_document(self, document_id: str | None, recipient_email: str | None) -> str:
        """Send an approved document to ``recipient_email``.

        Args:
            document_id: Catalog id of the document
            recipient_email: Destination address

        Returns:
            Message id assigned by the e-mail provider

        Raises:
            InputValidationError: A required field is missing
            NotFoundError: No approved document with this id
            AppError: The blob could not be downloaded
            UpstreamError: The e-mail provider rejected the request
        """
        logger.info(
            "Email request",
            extra={"structured": {"document_id": document_id, "recipient": recipient_email}},
        )

        if not document_id or not recipient_email:
            raise InputValidationError("Missing required fields")

        doc = await run_query(
            lambda: self._documents.get(document_id, DocumentStatus.approved),
            self._lookup_options,
            name="get_approved_document",
        )
        if doc is None:
            raise NotFoundError("Document not found")

        try:
            data = await self._blobs.download(doc.file_path)
        except AppError as e:
            logger.error("File download error for %s: %s", doc.file_path, e.message)
            emails_sent_total.labels(outcome="error").inc()
            raise AppError(
                "Failed to download file",
                code="DOWNLOAD_FAILED",
                user_message="Failed to download file",
            ) from e

        logger.info("File downloaded, size: %d", len(data))

        email = OutgoingEmail(
            sender=self._sender,
            to=[recipient_email],
            subject=document_email_subject(doc),
            html=render_document_email(doc),
            attachments=[
                EmailAttachment(
                    filename=doc.filename,
                    content=base64.b64encode(data).decode("ascii"),
                )
            ],
        )

        try:
            message_id = await self._email.send(email)
        except UpstreamError:
            emails_sent_total.labels(outcome="error").inc()
            raise

        emails_sent_total.labels(outcome="success").inc()
        logger.info("Email sent successfully: %s", message_id)
        return message_id
