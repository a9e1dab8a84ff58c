"""Models package - re-exports for convenience."""

from backend.app.models.chat import ChatErrorResponse, ChatMessage, ChatRequest, ChatResponse
from backend.app.models.documents import (
    APPROVED_FOLDER,
    PENDING_FOLDER,
    Document,
    DocumentStatus,
    DocumentType,
    PendingDocument,
    Uploader,
    UploadForm,
    UserProfile,
    approved_path_for,
)
from backend.app.models.notifications import (
    EmailAttachment,
    OutgoingEmail,
    SendEmailErrorResponse,
    SendEmailRequest,
    SendEmailResponse,
)

__all__ = [
    # Documents
    "Document",
    "DocumentStatus",
    "DocumentType",
    "PendingDocument",
    "Uploader",
    "UploadForm",
    "UserProfile",
    "PENDING_FOLDER",
    "APPROVED_FOLDER",
    "approved_path_for",
    # Chat
    "ChatRequest",
    "ChatResponse",
    "ChatErrorResponse",
    "ChatMessage",
    # Notifications
    "SendEmailRequest",
    "SendEmailResponse",
    "SendEmailErrorResponse",
    "EmailAttachment",
    "OutgoingEmail",
]
