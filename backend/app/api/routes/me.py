"""Current user endpoint - GET /me."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_admin_policy
from backend.app.auth.admin import AdminPolicy, display_name
from backend.app.config import get_settings
from backend.app.db.context import RequestContext

router = APIRouter()


class MeResponse(BaseModel):
    """Identity summary for the signed-in user."""

    user_id: str
    email: str | None
    display_name: str
    is_admin: bool


@router.get("/me", response_model=MeResponse)
async def me(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    policy: Annotated[AdminPolicy, Depends(get_admin_policy)],
) -> MeResponse:
    return MeResponse(
        user_id=ctx.user_id,
        email=ctx.email,
        display_name=display_name(ctx, get_settings().login_email_domain),
        is_admin=await policy.is_admin(ctx),
    )
