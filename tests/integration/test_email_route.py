"""Integration tests for POST /send-email."""

from fastapi.testclient import TestClient

from backend.app.db.inmemory import InMemoryDocumentRepository
from backend.app.errors import UpstreamError
from backend.app.storage.blobs import InMemoryBlobStore
from tests.factories import STUDENT, InMemoryServices, make_document


def _seed(services: InMemoryServices) -> None:
    services.documents = InMemoryDocumentRepository([make_document("a1", filename="ds.pdf")])
    services.blobs = InMemoryBlobStore({"approved/u1/ds.pdf": b"%PDF"})
    services.email.send.return_value = "re_123"


def test_send_email_success(client: TestClient, services: InMemoryServices) -> None:
    _seed(services)

    response = client.post(
        "/send-email",
        json={"documentId": "a1", "recipientEmail": "student@example.com"},
        headers=STUDENT,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "messageId": "re_123"}


def test_missing_fields(client: TestClient, services: InMemoryServices) -> None:
    _seed(services)

    response = client.post("/send-email", json={"documentId": "a1"}, headers=STUDENT)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Missing required fields"}


def test_unknown_document(client: TestClient, services: InMemoryServices) -> None:
    _seed(services)

    response = client.post(
        "/send-email",
        json={"documentId": "nope", "recipientEmail": "student@example.com"},
        headers=STUDENT,
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Document not found"}


def test_missing_blob(client: TestClient, services: InMemoryServices) -> None:
    _seed(services)
    services.blobs = InMemoryBlobStore()

    response = client.post(
        "/send-email",
        json={"documentId": "a1", "recipientEmail": "student@example.com"},
        headers=STUDENT,
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to download file"


def test_provider_failure(client: TestClient, services: InMemoryServices) -> None:
    _seed(services)
    services.email.send.side_effect = UpstreamError(
        "Failed to send email", 422, user_message="Failed to send email"
    )

    response = client.post(
        "/send-email",
        json={"documentId": "a1", "recipientEmail": "student@example.com"},
        headers=STUDENT,
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to send email"}
