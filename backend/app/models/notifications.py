"""E-mail notification contracts."""

from pydantic import BaseModel, ConfigDict, Field


class SendEmailRequest(BaseModel):
    """Body of POST /send-email.

    Both fields are optional at the schema level so the handler can report
    missing fields in its own error shape.
    """

    model_config = ConfigDict(populate_by_name=True)

    document_id: str | None = Field(default=None, alias="documentId")
    recipient_email: str | None = Field(default=None, alias="recipientEmail")


class SendEmailResponse(BaseModel):
    """Successful e-mail dispatch."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message_id: str = Field(..., serialization_alias="messageId")


class SendEmailErrorResponse(BaseModel):
    """Failed e-mail dispatch."""

    success: bool = False
    error: str


class EmailAttachment(BaseModel):
    """Base64 attachment as accepted by the e-mail API."""

    filename: str
    content: str


class OutgoingEmail(BaseModel):
    """Request body for the transactional e-mail API."""

    sender: str = Field(..., serialization_alias="from")
    to: list[str]
    subject: str
    html: str
    attachments: list[EmailAttachment] = Field(default_factory=list)
