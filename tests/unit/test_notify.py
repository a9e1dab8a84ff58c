"""Unit tests for e-mail notification: handler, template and Resend client."""

import base64
import json
from unittest.mock import AsyncMock

import httpx
import pytest

from backend.app.db.inmemory import InMemoryDocumentRepository
from backend.app.errors import (
    AppError,
    CatalogError,
    InputValidationError,
    NotFoundError,
    UpstreamError,
)
from backend.app.models.documents import DocumentStatus
from backend.app.models.notifications import OutgoingEmail
from backend.app.notify.email_client import ResendEmailClient
from backend.app.notify.handler import NotificationHandler
from backend.app.notify.templates import render_document_email
from backend.app.retry import RetryOptions
from backend.app.storage.blobs import InMemoryBlobStore
from tests.factories import make_document

SENDER = "VTU MITRA <onboarding@resend.dev>"


@pytest.fixture
def documents() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository(
        [
            make_document("a1", filename="ds-notes.pdf"),
            make_document("p1", status=DocumentStatus.pending),
        ]
    )


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore({"approved/u1/ds-notes.pdf": b"%PDF-1.4 notes"})


@pytest.fixture
def email() -> AsyncMock:
    client = AsyncMock()
    client.send.return_value = "msg_123"
    return client


@pytest.fixture
def handler(
    documents: InMemoryDocumentRepository, blobs: InMemoryBlobStore, email: AsyncMock
) -> NotificationHandler:
    return NotificationHandler(documents, blobs, email, SENDER)


class TestNotificationHandler:
    @pytest.mark.asyncio
    async def test_sends_document_as_attachment(
        self, handler: NotificationHandler, email: AsyncMock
    ) -> None:
        message_id = await handler.send_document("a1", "student@example.com")

        assert message_id == "msg_123"
        sent: OutgoingEmail = email.send.await_args.args[0]
        assert sent.sender == SENDER
        assert sent.to == ["student@example.com"]
        assert sent.subject == "Your requested study material: Data Structures"
        assert sent.attachments[0].filename == "ds-notes.pdf"
        assert base64.b64decode(sent.attachments[0].content) == b"%PDF-1.4 notes"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document_id,recipient", [(None, "a@b.c"), ("a1", None), ("", "")])
    async def test_missing_fields(
        self, handler: NotificationHandler, document_id: str | None, recipient: str | None
    ) -> None:
        with pytest.raises(InputValidationError, match="Missing required fields"):
            await handler.send_document(document_id, recipient)

    @pytest.mark.asyncio
    async def test_pending_document_is_not_found(self, handler: NotificationHandler) -> None:
        with pytest.raises(NotFoundError, match="Document not found"):
            await handler.send_document("p1", "student@example.com")

    @pytest.mark.asyncio
    async def test_missing_blob_fails_download(
        self, documents: InMemoryDocumentRepository, email: AsyncMock
    ) -> None:
        handler = NotificationHandler(documents, InMemoryBlobStore(), email, SENDER)

        with pytest.raises(AppError) as exc_info:
            await handler.send_document("a1", "student@example.com")

        assert exc_info.value.user_message == "Failed to download file"
        email.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_failure_propagates(self, handler: NotificationHandler, email: AsyncMock) -> None:
        email.send.side_effect = UpstreamError("Failed to send email", 422, user_message="Failed to send email")

        with pytest.raises(UpstreamError):
            await handler.send_document("a1", "student@example.com")

    @pytest.mark.asyncio
    async def test_catalog_failure_is_not_retried(
        self, blobs: InMemoryBlobStore, email: AsyncMock
    ) -> None:
        documents = AsyncMock()
        documents.get.side_effect = ConnectionError("connection reset by peer")
        handler = NotificationHandler(
            documents, blobs, email, SENDER, RetryOptions(max_retries=3, initial_delay_ms=1)
        )

        with pytest.raises(CatalogError):
            await handler.send_document("a1", "student@example.com")

        assert documents.get.await_count == 1
        email.send.assert_not_awaited()


def test_template_escapes_catalog_fields() -> None:
    html = render_document_email(make_document("a1", subject="<script>x</script>"))

    assert "<script>" not in html
    assert "&lt;script&gt;x&lt;/script&gt;" in html
    assert "<strong>Branch:</strong> CSE" in html


class TestResendEmailClient:
    def _email(self) -> OutgoingEmail:
        return OutgoingEmail(sender=SENDER, to=["s@example.com"], subject="Hi", html="<p>Hi</p>")

    @pytest.mark.asyncio
    async def test_posts_payload_and_returns_id(self) -> None:
        seen: dict = {}

        def respond(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "re_abc"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(respond)) as http:
            client = ResendEmailClient("re_key", "https://api.resend.test", client=http)
            assert await client.send(self._email()) == "re_abc"

        assert seen["url"] == "https://api.resend.test/emails"
        assert seen["auth"] == "Bearer re_key"
        assert seen["body"]["from"] == SENDER
        assert seen["body"]["to"] == ["s@example.com"]
        assert seen["body"]["attachments"] == []

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(403, text="domain not verified"))

        async with httpx.AsyncClient(transport=transport) as http:
            client = ResendEmailClient("re_key", client=http)
            with pytest.raises(UpstreamError) as exc_info:
                await client.send(self._email())

        assert exc_info.value.upstream_status == 403
        assert exc_info.value.user_message == "Failed to send email"
