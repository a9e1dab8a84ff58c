"""Dependency providers wiring repositories, clients and services.

Every route depends on these functions, so tests swap implementations via
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.api.auth import get_current_context
from backend.app.auth.admin import AdminPolicy, build_admin_policy
from backend.app.chat.handler import ChatRequestHandler
from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.db.engine import create_session_factory, get_async_engine
from backend.app.db.repositories import (
    DocumentRepository,
    IntentLog,
    ProfileRepository,
    RoleRepository,
)
from backend.app.db.sql_repositories import (
    SqlDocumentRepository,
    SqlIntentLog,
    SqlProfileRepository,
    SqlRoleRepository,
)
from backend.app.errors import PermissionDeniedError
from backend.app.llm.client import CompletionClient, get_completion_client
from backend.app.moderation.workflow import ModerationWorkflow
from backend.app.notify.email_client import EmailClient, ResendEmailClient
from backend.app.notify.handler import NotificationHandler
from backend.app.retry import RetryOptions
from backend.app.storage.blobs import BlobStore, S3BlobStore
from backend.app.uploads.service import UploadService


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return create_session_factory(get_async_engine())


def get_document_repository() -> DocumentRepository:
    return SqlDocumentRepository(get_session_factory())


def get_profile_repository() -> ProfileRepository:
    return SqlProfileRepository(get_session_factory())


def get_role_repository() -> RoleRepository:
    return SqlRoleRepository(get_session_factory())


def get_intent_log() -> IntentLog:
    return SqlIntentLog(get_session_factory())


@lru_cache
def get_blob_store() -> BlobStore:
    return S3BlobStore.from_settings(get_settings())


@lru_cache
def get_completion_client_dep() -> CompletionClient:
    return get_completion_client(get_settings())


@lru_cache
def get_email_client() -> EmailClient:
    return ResendEmailClient.from_settings(get_settings())


def get_retry_options() -> RetryOptions:
    return RetryOptions.from_settings(get_settings())


def get_chat_handler(
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
    completions: Annotated[CompletionClient, Depends(get_completion_client_dep)],
    retry_options: Annotated[RetryOptions, Depends(get_retry_options)],
) -> ChatRequestHandler:
    return ChatRequestHandler(documents, completions, retry_options)


def get_notification_handler(
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
    blobs: Annotated[BlobStore, Depends(get_blob_store)],
    email: Annotated[EmailClient, Depends(get_email_client)],
    retry_options: Annotated[RetryOptions, Depends(get_retry_options)],
) -> NotificationHandler:
    return NotificationHandler(documents, blobs, email, get_settings().email_from, retry_options)


def get_moderation_workflow(
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
    profiles: Annotated[ProfileRepository, Depends(get_profile_repository)],
    blobs: Annotated[BlobStore, Depends(get_blob_store)],
    intents: Annotated[IntentLog, Depends(get_intent_log)],
    retry_options: Annotated[RetryOptions, Depends(get_retry_options)],
) -> ModerationWorkflow:
    return ModerationWorkflow(documents, profiles, blobs, intents, retry_options)


def get_upload_service(
    documents: Annotated[DocumentRepository, Depends(get_document_repository)],
    blobs: Annotated[BlobStore, Depends(get_blob_store)],
    retry_options: Annotated[RetryOptions, Depends(get_retry_options)],
) -> UploadService:
    settings = get_settings()
    return UploadService(
        documents,
        blobs,
        max_bytes=settings.max_upload_bytes,
        allowed_extensions=settings.allowed_upload_extensions,
        retry_options=retry_options,
    )


def get_admin_policy(
    roles: Annotated[RoleRepository, Depends(get_role_repository)],
) -> AdminPolicy:
    return build_admin_policy(get_settings(), roles)


async def require_admin(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    policy: Annotated[AdminPolicy, Depends(get_admin_policy)],
) -> RequestContext:
    """Resolve the caller and insist on the admin capability.

    Raises:
        PermissionDeniedError: Caller is not an admin
    """
    if not await policy.is_admin(ctx):
        raise PermissionDeniedError("Admin access required")
    return ctx
