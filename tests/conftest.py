import os

# Settings are read at import time; point the module engine at SQLite before anything loads it.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.auth.service import AuthService
from src.database import get_db, init_db
from src.main import app
from tests.support import FakeBox, FakeCamunda, FakeExtraction


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database with the demo members for each test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(bind=test_engine)
    TestingSessionLocal = sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with TestingSessionLocal() as session:
        await AuthService(session).seed_demo_members()
        yield session

    await test_engine.dispose()


@pytest.fixture
def box(monkeypatch) -> FakeBox:
    fake = FakeBox()
    monkeypatch.setattr(app.state, "box_client", fake)
    return fake


@pytest.fixture
def camunda(monkeypatch) -> FakeCamunda:
    fake = FakeCamunda()
    monkeypatch.setattr(app.state, "camunda_client", fake)
    return fake


@pytest.fixture
def extraction(monkeypatch) -> FakeExtraction:
    fake = FakeExtraction()
    monkeypatch.setattr(app.state, "extraction_client", fake)
    return fake


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession,
    box: FakeBox,
    camunda: FakeCamunda,
    extraction: FakeExtraction,
) -> AsyncGenerator[AsyncClient, None]:
    """Client for the portal API, backed by the test session and fake integrations."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
