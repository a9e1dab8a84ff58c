"""Helper functions for UI - backend API client."""

from typing import Any

import httpx

DEFAULT_TIMEOUT = 60.0


def dev_token(user_id: str, email: str = "") -> str:
    """Bearer token accepted by the backend when no JWT secret is configured."""
    return f"{user_id}:{email}"


def call_chat(backend_url: str, headers: dict[str, str], message: str) -> dict[str, Any]:
    """Call POST /chat.

    The backend answers failures with the same ``{message, documents}``
    shape plus ``error``, so a 500 body is returned rather than raised.

    Raises:
        httpx.HTTPStatusError: For any other non-2xx status
    """
    response = httpx.post(
        f"{backend_url}/chat",
        json={"message": message},
        headers=headers,
        timeout=DEFAULT_TIMEOUT,
    )
    if response.status_code == 500:
        body: dict[str, Any] = response.json()
        return body
    response.raise_for_status()
    result: dict[str, Any] = response.json()
    return result


def send_document_email(
    backend_url: str, headers: dict[str, str], document_id: str, recipient_email: str
) -> dict[str, Any]:
    """Call POST /send-email; returns ``{success, messageId}`` or ``{success, error}``."""
    response = httpx.post(
        f"{backend_url}/send-email",
        json={"documentId": document_id, "recipientEmail": recipient_email},
        headers=headers,
        timeout=DEFAULT_TIMEOUT,
    )
    if response.status_code == 500:
        failure: dict[str, Any] = response.json()
        return failure
    response.raise_for_status()
    result: dict[str, Any] = response.json()
    return result


def upload_document(
    backend_url: str,
    headers: dict[str, str],
    filename: str,
    data: bytes,
    subject: str,
    semester: str,
    branch: str,
    document_type: str,
) -> dict[str, Any]:
    """Call POST /documents with a multipart form.

    Raises:
        httpx.HTTPStatusError: On validation (422) or server errors
    """
    response = httpx.post(
        f"{backend_url}/documents",
        data={
            "subject": subject,
            "semester": semester,
            "branch": branch,
            "document_type": document_type,
        },
        files={"file": (filename, data)},
        headers=headers,
        timeout=DEFAULT_TIMEOUT,
    )
    response.raise_for_status()
    result: dict[str, Any] = response.json()
    return result


def download_document(backend_url: str, headers: dict[str, str], document_id: str) -> bytes:
    response = httpx.get(
        f"{backend_url}/documents/{document_id}/download",
        headers=headers,
        timeout=DEFAULT_TIMEOUT,
    )
    response.raise_for_status()
    return response.content


def get_me(backend_url: str, headers: dict[str, str]) -> dict[str, Any]:
    response = httpx.get(f"{backend_url}/me", headers=headers, timeout=DEFAULT_TIMEOUT)
    response.raise_for_status()
    result: dict[str, Any] = response.json()
    return result


def list_pending(backend_url: str, headers: dict[str, str]) -> list[dict[str, Any]]:
    response = httpx.get(
        f"{backend_url}/admin/documents/pending", headers=headers, timeout=DEFAULT_TIMEOUT
    )
    response.raise_for_status()
    result: list[dict[str, Any]] = response.json()
    return result


def moderate(backend_url: str, headers: dict[str, str], document_id: str, action: str) -> dict[str, Any]:
    """Approve or reject a pending document (``action`` is "approve" or "reject")."""
    if action not in ("approve", "reject"):
        raise ValueError(f"Unknown moderation action: {action}")
    response = httpx.post(
        f"{backend_url}/admin/documents/{document_id}/{action}",
        headers=headers,
        timeout=DEFAULT_TIMEOUT,
    )
    response.raise_for_status()
    result: dict[str, Any] = response.json()
    return result


def format_document_label(doc: dict[str, Any]) -> str:
    """One-line label for a document card."""
    return (
        f"{doc.get('subject', '')} · {doc.get('document_type', '')} · "
        f"Sem {doc.get('semester', '')} · {doc.get('branch', '')}"
    )
