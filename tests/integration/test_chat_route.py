"""Integration tests for POST /chat."""

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from backend.app.chat.prompts import ERROR_REPLY, RATE_LIMITED_REPLY
from backend.app.db.inmemory import InMemoryDocumentRepository
from backend.app.errors import CompletionRateLimitedError, UpstreamError
from backend.app.models.documents import DocumentStatus
from tests.factories import STUDENT, InMemoryServices, make_document


def test_chat_returns_matched_documents(client: TestClient, services: InMemoryServices) -> None:
    services.documents = InMemoryDocumentRepository(
        [make_document("a1"), make_document("p1", status=DocumentStatus.pending)]
    )
    services.completions.complete.return_value = "Found it! [DOCUMENTS:a1,a2]"

    response = client.post("/chat", json={"message": "DS notes"}, headers=STUDENT)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Found it!"
    assert [d["id"] for d in body["documents"]] == ["a1"]
    assert body["documents"][0]["document_type"] == "Notes"


def test_rate_limit_is_still_200(client: TestClient, services: InMemoryServices) -> None:
    services.completions.complete.side_effect = CompletionRateLimitedError()

    response = client.post("/chat", json={"message": "DS notes"}, headers=STUDENT)

    assert response.status_code == 200
    assert response.json() == {"message": RATE_LIMITED_REPLY, "documents": []}


def test_upstream_failure_returns_error_shape(client: TestClient, services: InMemoryServices) -> None:
    services.completions.complete.side_effect = UpstreamError("AI Gateway error: 500", 500)
    before = REGISTRY.get_sample_value("chat_requests_total", {"outcome": "error"}) or 0.0

    response = client.post("/chat", json={"message": "DS notes"}, headers=STUDENT)

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == ERROR_REPLY
    assert body["documents"] == []
    assert body["error"]
    assert "AI Gateway error" not in body["error"]
    assert REGISTRY.get_sample_value("chat_requests_total", {"outcome": "error"}) == before + 1


def test_blank_message_rejected(client: TestClient) -> None:
    response = client.post("/chat", json={"message": "   "}, headers=STUDENT)
    assert response.status_code == 422


def test_requires_auth(client: TestClient) -> None:
    response = client.post("/chat", json={"message": "DS notes"})
    assert response.status_code == 401
