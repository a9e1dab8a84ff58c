"""Chat endpoint - POST /chat."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_chat_handler
from backend.app.chat.handler import ChatRequestHandler
from backend.app.chat.prompts import ERROR_REPLY
from backend.app.db.context import RequestContext
from backend.app.errors import user_friendly_error
from backend.app.models.chat import ChatErrorResponse, ChatRequest, ChatResponse
from backend.app.utils.metrics import chat_requests_total

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={500: {"model": ChatErrorResponse}},
)
async def chat(
    request: ChatRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    handler: Annotated[ChatRequestHandler, Depends(get_chat_handler)],
) -> ChatResponse | JSONResponse:
    """Match a student's message against approved documents.

    A rate-limited completion API still yields 200 with a canned reply; any
    other failure yields 500 in the same shape plus an ``error`` field.
    """
    try:
        return await handler.handle(request.message)
    except Exception as e:
        logger.exception("Error in chat request for user %s", ctx.user_id)
        chat_requests_total.labels(outcome="error").inc()
        body = ChatErrorResponse(message=ERROR_REPLY, documents=[], error=user_friendly_error(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json"),
        )
