"""Health check endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.api.deps import get_session_factory

logger = logging.getLogger(__name__)

router = APIRouter()


async def check_db(session_factory: async_sessionmaker[AsyncSession]) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return (True, "ok")
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        return (False, f"error: {type(e).__name__}")


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe; 200 whenever the process is serving."""
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    Returns:
        200 with component status if the catalog is reachable, 503 otherwise
    """
    db_ok, db_status = await check_db(session_factory)

    body = {"status": "ok" if db_ok else "degraded", "components": {"db": db_status}}
    if not db_ok:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
