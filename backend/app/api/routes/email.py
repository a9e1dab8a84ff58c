"""E-mail endpoint - POST /send-email."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_notification_handler
from backend.app.db.context import RequestContext
from backend.app.errors import user_friendly_error
from backend.app.models.notifications import (
    SendEmailErrorResponse,
    SendEmailRequest,
    SendEmailResponse,
)
from backend.app.notify.handler import NotificationHandler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/send-email",
    response_model=SendEmailResponse,
    response_model_by_alias=True,
    responses={500: {"model": SendEmailErrorResponse}},
)
async def send_email(
    request: SendEmailRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    handler: Annotated[NotificationHandler, Depends(get_notification_handler)],
) -> SendEmailResponse | JSONResponse:
    """E-mail an approved document as an attachment."""
    try:
        message_id = await handler.send_document(request.document_id, request.recipient_email)
    except Exception as e:
        logger.exception("Error in send-email request for user %s", ctx.user_id)
        body = SendEmailErrorResponse(error=user_friendly_error(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(),
        )

    return SendEmailResponse(message_id=message_id)
