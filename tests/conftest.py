"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backend.app.api import deps
from backend.app.db.models import Base
from backend.app.main import app
from backend.app.retry import RetryOptions
from tests.factories import InMemoryServices, SleepRecorder


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fast_retry() -> RetryOptions:
    """Retry options with tiny delays for tests that don't inspect them."""
    return RetryOptions(max_retries=3, initial_delay_ms=1, max_delay_ms=2, timeout_ms=1000)


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine with the catalog schema created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=sqlite_engine, expire_on_commit=False)


@pytest.fixture
def services() -> InMemoryServices:
    return InMemoryServices()


@pytest.fixture
def client(services: InMemoryServices, fast_retry: RetryOptions) -> Iterator[TestClient]:
    """TestClient with every store and external client replaced in memory."""
    overrides = {
        deps.get_document_repository: lambda: services.documents,
        deps.get_profile_repository: lambda: services.profiles,
        deps.get_role_repository: lambda: services.roles,
        deps.get_intent_log: lambda: services.intents,
        deps.get_blob_store: lambda: services.blobs,
        deps.get_completion_client_dep: lambda: services.completions,
        deps.get_email_client: lambda: services.email,
        deps.get_retry_options: lambda: fast_retry,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

