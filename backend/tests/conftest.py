"""
Conduit Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every API test gets its own application built by `create_app()` over
       a fresh SQLite file in pytest's tmp_path, so tests never share rows.

Fixture Hierarchy:
    Function-scoped:
    ├── settings:        Settings pointing at tmp_path/test.db
    ├── app:             FastAPI app with tables created
    ├── test_client:     HTTPX AsyncClient over ASGITransport
    ├── register_user:   async helper → registered user payload (with token)
    ├── create_article:  async helper → created article payload
    └── mock_db_session: AsyncMock session for pure service tests
"""

import os
import tempfile
from typing import Any, Awaitable, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set before any conduit import: conduit.main builds a default app at import
_default_db_dir = tempfile.mkdtemp(prefix="conduit_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_default_db_dir}/default.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["LOG_LEVEL"] = "WARNING"

from conduit.config import Settings  # noqa: E402
from conduit.main import create_app  # noqa: E402

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
DEFAULT_PASSWORD = "correct-horse-battery"


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Token {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret_key=TEST_SECRET,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings):
    """
    A fresh application with its tables created.

    ASGITransport does not run the lifespan, so tables are created here.
    """
    application = create_app(settings)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    Async HTTP client talking to `app` in-process.

    Usage:
        async def test_tags(test_client):
            response = await test_client.get("/api/tags")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register_user(test_client) -> Callable[..., Awaitable[Dict[str, Any]]]:
    """
    Register a user through the API and return the `user` payload.

    Usage:
        jake = await register_user("jake")
        jake["token"]
    """

    async def _register(
        username: str,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
    ) -> Dict[str, Any]:
        response = await test_client.post(
            "/api/users",
            json={
                "user": {
                    "username": username,
                    "email": email or f"{username}@conduit.example.com",
                    "password": password,
                }
            },
        )
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _register


@pytest.fixture
def create_article(test_client) -> Callable[..., Awaitable[Dict[str, Any]]]:
    """Create an article as `token`'s user and return the `article` payload."""

    async def _create(
        token: str,
        title: str = "How to train your dragon",
        tags: Optional[List[str]] = None,
        description: str = "Ever wonder how?",
        body: str = "You have to believe",
    ) -> Dict[str, Any]:
        response = await test_client.post(
            "/api/articles",
            json={
                "article": {
                    "title": title,
                    "description": description,
                    "body": body,
                    "tagList": tags or [],
                }
            },
            headers=auth_headers(token),
        )
        assert response.status_code == 201, response.text
        return response.json()["article"]

    return _create


# ══════════════════════════════════════════════════════════════════════════
# Service-Level Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Mock async database session for service tests that never touch SQL.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.flush = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session
