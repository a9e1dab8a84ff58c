"""FastAPI application - VTU MITRA backend."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.api.routes.admin import router as admin_router
from backend.app.api.routes.chat import router as chat_router
from backend.app.api.routes.documents import router as documents_router
from backend.app.api.routes.email import router as email_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.me import router as me_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.config import get_settings
from backend.app.db.engine import dispose_engine
from backend.app.errors import AppError, InputValidationError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    await dispose_engine()


app = FastAPI(title=f"{get_settings().app_name} API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map domain errors to ``{detail, code}``; raw detail stays in the logs."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s rejected: [%s] %s", request.method, request.url.path, exc.code, exc.message)

    content: dict[str, object] = {"detail": exc.user_message, "code": exc.code}
    if isinstance(exc, InputValidationError) and exc.field_errors:
        content["errors"] = exc.field_errors
    return JSONResponse(status_code=exc.status_code, content=content)


# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(me_router, tags=["auth"])
app.include_router(chat_router, tags=["chat"])
app.include_router(email_router, tags=["email"])
app.include_router(documents_router)
app.include_router(admin_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": f"{get_settings().app_name} API", "version": "0.1.0"}
