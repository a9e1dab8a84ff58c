"""Chat request handler: match a student's request against approved documents.

Flow: load approved catalog -> build context -> completion call -> parse the
``[DOCUMENTS:...]`` block -> keep only IDs present in the loaded catalog.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from backend.app.chat.delimiter import parse_reply
from backend.app.chat.prompts import RATE_LIMITED_REPLY, build_system_prompt
from backend.app.db.repositories import DocumentRepository
from backend.app.errors import CompletionRateLimitedError
from backend.app.llm.client import CompletionClient
from backend.app.models.chat import ChatResponse
from backend.app.models.documents import Document, DocumentStatus
from backend.app.retry import RetryOptions, run_query
from backend.app.utils.metrics import chat_documents_matched, chat_requests_total

logger = logging.getLogger(__name__)


def filter_known_documents(documents: list[Document], ids: list[str]) -> list[Document]:
    """Keep catalog documents whose ID was referenced; unknown IDs are dropped."""
    wanted = set(ids)
    return [doc for doc in documents if doc.id in wanted]


class ChatRequestHandler:
    """Handles one chat message end to end."""

    def __init__(
        self,
        documents: DocumentRepository,
        completions: CompletionClient,
        retry_options: RetryOptions | None = None,
        sleep_fn: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        self._documents = documents
        self._completions = completions
        self._retry_options = retry_options
        self._sleep_fn = sleep_fn

    async def handle(self, message: str) -> ChatResponse:
        """Answer a chat message.

        Blank messages are rejected by the caller, not here.

        Raises:
            CatalogError: Approved documents could not be loaded
            UpstreamError: Completion API failed with anything but a rate limit
        """
        logger.info("Chat request received: %s", message)

        approved = await run_query(
            lambda: self._documents.list_by_status(DocumentStatus.approved),
            self._retry_options,
            sleep_fn=self._sleep_fn,
            name="list_approved_documents",
        )
        logger.info("Found %d approved documents", len(approved))

        messages = [
            {"role": "system", "content": build_system_prompt(approved)},
            {"role": "user", "content": message},
        ]

        try:
            reply = await self._completions.complete(messages)
        except CompletionRateLimitedError:
            chat_requests_total.labels(outcome="rate_limited").inc()
            return ChatResponse(message=RATE_LIMITED_REPLY, documents=[])

        logger.info("AI response: %s", reply)

        parsed = parse_reply(reply)
        matched = filter_known_documents(approved, parsed.document_ids)

        if parsed.has_block:
            dropped = len(set(parsed.document_ids)) - len(matched)
            logger.info(
                "Matched %d documents",
                len(matched),
                extra={"structured": {"referenced": len(parsed.document_ids), "dropped": dropped}},
            )

        chat_documents_matched.observe(len(matched))
        chat_requests_total.labels(outcome="success").inc()
        return ChatResponse(message=parsed.message, documents=matched)
