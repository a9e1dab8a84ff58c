"""Chat request/response contracts."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from backend.app.models.documents import Document


class ChatRequest(BaseModel):
    """Body of POST /chat."""

    message: str = Field(..., min_length=1, max_length=2000)

    @field_validator("message")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class ChatResponse(BaseModel):
    """Assistant reply with the documents it matched."""

    message: str
    documents: list[Document] = Field(default_factory=list)


class ChatErrorResponse(ChatResponse):
    """Shape returned with HTTP 500 when the chat request fails."""

    error: str


class ChatMessage(BaseModel):
    """Client-local chat history entry."""

    role: Literal["user", "assistant"]
    content: str
    documents: list[Document] | None = None
