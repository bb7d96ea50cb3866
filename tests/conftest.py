"""Shared test fixtures."""

import asyncio
import os
import tempfile

# Point the application engine at a throwaway file before aio_jobs is imported
_DB_DIR = tempfile.mkdtemp(prefix="aio-jobs-tests-")
os.environ["AIO_DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/api.db"
os.environ.pop("AIO_API_KEY", None)

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from aio_jobs.core.errors import ProviderError  # noqa: E402
from aio_jobs.database.base import Base  # noqa: E402
from aio_jobs.database.models import OrganizationORM  # noqa: E402

ORG_ID = "org-1"


class FakeTranslator:
    """Translation provider that records calls and can fail or stall."""

    service_name = "fake-translator"

    def __init__(self, fail_times: int = 0, delay: float = 0.0, on_call=None):
        self.fail_times = fail_times
        self.delay = delay
        self.on_call = on_call
        self.calls: list[tuple[str, str, str]] = []

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        if self.on_call:
            await self.on_call()
        if self.delay:
            await asyncio.sleep(self.delay)
        if len(self.calls) <= self.fail_times:
            raise ProviderError("translation service unavailable")
        return f"[{target_lang}] {text}"


class FakeEmbedder:
    """Embedding provider returning a small deterministic vector."""

    model = "fake-embedding"

    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if len(self.calls) <= self.fail_times:
            raise ProviderError("embedding service unavailable")
        return [float(len(text)), 1.0, 0.5]


@pytest.fixture
def run():
    """Run an async test body against a fresh in-memory database.

    The body receives a session factory bound to that database.
    """

    def _run(body):
        async def runner():
            engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            factory = async_sessionmaker(engine, expire_on_commit=False)
            try:
                return await body(factory)
            finally:
                await engine.dispose()

        return asyncio.run(runner())

    return _run


@pytest.fixture
def seed():
    """Insert an organization plus the given content rows."""

    async def _seed(factory, *rows, org_id: str = ORG_ID):
        async with factory() as session:
            if await session.get(OrganizationORM, org_id) is None:
                session.add(OrganizationORM(id=org_id, name=f"Org {org_id}", slug=org_id))
            session.add_all(rows)
            await session.commit()

    return _seed


@pytest.fixture(scope="session")
def fake_translator():
    """The fake translation provider class."""
    return FakeTranslator


@pytest.fixture(scope="session")
def fake_embedder():
    """The fake embedding provider class."""
    return FakeEmbedder
