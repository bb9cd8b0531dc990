"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FILE", os.path.join(os.path.dirname(__file__), ".logs", "test.log"))

from typing import AsyncGenerator, List

import httpx
import pytest
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.core.database import Base, get_db
from app.models.project import Organization, Project
from tests.factories import create_test_api_key, create_test_organization, create_test_project


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory database."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an async test client bound to the test session."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def organization(db_session: AsyncSession) -> Organization:
    return await create_test_organization(db_session)


@pytest.fixture
async def project(db_session: AsyncSession, organization: Organization) -> Project:
    return await create_test_project(db_session, organization, name="Chatbot")


@pytest.fixture
async def project_key(db_session: AsyncSession, project: Project) -> str:
    """Plain text project-level API key."""
    return await create_test_api_key(db_session, project.organization_id, project_id=project.id)


@pytest.fixture
async def organization_key(db_session: AsyncSession, organization: Organization) -> str:
    """Plain text organization-level API key."""
    return await create_test_api_key(db_session, organization.id)


@pytest.fixture
def auth_headers(project_key: str) -> dict:
    return {"Authorization": f"Bearer {project_key}"}


@pytest.fixture
def org_headers(organization_key: str) -> dict:
    return {"Authorization": f"Bearer {organization_key}"}


@pytest.fixture
def error_logs() -> List[str]:
    """Messages logged at ERROR level while the test runs."""
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="ERROR")
    yield messages
    logger.remove(handler_id)
