"""Unit tests for the chat request handler."""

from unittest.mock import AsyncMock

import pytest

from backend.app.chat.handler import ChatRequestHandler, filter_known_documents
from backend.app.chat.prompts import NO_DOCUMENTS, RATE_LIMITED_REPLY, build_system_prompt
from backend.app.db.inmemory import InMemoryDocumentRepository
from backend.app.errors import CatalogError, CompletionRateLimitedError, UpstreamError
from backend.app.models.documents import DocumentStatus
from backend.app.retry import RetryOptions
from tests.factories import SleepRecorder, make_document


@pytest.fixture
def catalog() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository(
        [
            make_document("a1", subject="Data Structures"),
            make_document("a3", subject="Operating Systems", semester="4", branch="ISE"),
            make_document("p9", status=DocumentStatus.pending, subject="Data Structures"),
        ]
    )


def completion_returning(reply: str) -> AsyncMock:
    client = AsyncMock()
    client.complete.return_value = reply
    return client


@pytest.mark.asyncio
async def test_found_it_keeps_only_known_ids(catalog: InMemoryDocumentRepository) -> None:
    handler = ChatRequestHandler(catalog, completion_returning("Found it! [DOCUMENTS:a1,a2]"))

    response = await handler.handle("DS notes 3rd sem")

    assert response.message == "Found it!"
    assert [d.id for d in response.documents] == ["a1"]


@pytest.mark.asyncio
async def test_returned_documents_are_subset_of_approved(catalog: InMemoryDocumentRepository) -> None:
    # p9 is pending: it was never sent to the model, so it must not come back
    handler = ChatRequestHandler(
        catalog, completion_returning("Here you go [DOCUMENTS:p9, a3, ghost, a1]")
    )

    response = await handler.handle("anything")

    approved_ids = {d.id for d in await catalog.list_by_status(DocumentStatus.approved)}
    returned_ids = {d.id for d in response.documents}
    assert returned_ids <= approved_ids
    assert returned_ids == {"a1", "a3"}


@pytest.mark.asyncio
async def test_no_block_returns_full_reply_and_no_documents(
    catalog: InMemoryDocumentRepository,
) -> None:
    reply = "I couldn't find OS notes for 1st sem, but 4th sem ISE notes exist."
    handler = ChatRequestHandler(catalog, completion_returning(reply))

    response = await handler.handle("OS notes sem 1")

    assert response.message == reply
    assert response.documents == []


@pytest.mark.asyncio
async def test_prompt_lists_only_approved_documents(catalog: InMemoryDocumentRepository) -> None:
    completions = completion_returning("ok")
    handler = ChatRequestHandler(catalog, completions)

    await handler.handle("DS notes")

    messages = completions.complete.await_args.args[0]
    assert messages[0]["role"] == "system"
    assert "ID: a1, Filename: a1.pdf, Subject: Data Structures" in messages[0]["content"]
    assert "ID: p9" not in messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "DS notes"}


@pytest.mark.asyncio
async def test_empty_catalog_uses_no_documents_marker() -> None:
    completions = completion_returning("Nothing yet.")
    handler = ChatRequestHandler(InMemoryDocumentRepository(), completions)

    response = await handler.handle("anything")

    assert NO_DOCUMENTS in completions.complete.await_args.args[0][0]["content"]
    assert response.documents == []


@pytest.mark.asyncio
async def test_rate_limit_returns_canned_reply(catalog: InMemoryDocumentRepository) -> None:
    completions = AsyncMock()
    completions.complete.side_effect = CompletionRateLimitedError()
    handler = ChatRequestHandler(catalog, completions)

    response = await handler.handle("DS notes")

    assert response.message == RATE_LIMITED_REPLY
    assert response.documents == []


@pytest.mark.asyncio
async def test_other_upstream_errors_propagate(catalog: InMemoryDocumentRepository) -> None:
    completions = AsyncMock()
    completions.complete.side_effect = UpstreamError("AI Gateway error: 500", 500)
    handler = ChatRequestHandler(catalog, completions)

    with pytest.raises(UpstreamError):
        await handler.handle("DS notes")


@pytest.mark.asyncio
async def test_catalog_failure_is_retried_then_raised(sleep_recorder: SleepRecorder) -> None:
    documents = AsyncMock()
    documents.list_by_status.side_effect = ConnectionError("network down")
    completions = completion_returning("unused")
    handler = ChatRequestHandler(
        documents,
        completions,
        RetryOptions(max_retries=3, initial_delay_ms=1000),
        sleep_fn=sleep_recorder,
    )

    with pytest.raises(CatalogError):
        await handler.handle("DS notes")

    assert documents.list_by_status.await_count == 3
    assert sleep_recorder.calls == [1.0, 2.0]
    completions.complete.assert_not_awaited()


def test_filter_known_documents_preserves_catalog_order() -> None:
    docs = [make_document("a"), make_document("b"), make_document("c")]
    assert [d.id for d in filter_known_documents(docs, ["c", "a", "zz"])] == ["a", "c"]


def test_system_prompt_embeds_delimiter_instructions() -> None:
    prompt = build_system_prompt([make_document("x1")])
    assert "[DOCUMENTS:id1,id2,id3]" in prompt
    assert "ID: x1" in prompt
