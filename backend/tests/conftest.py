"""
RLS Notes: Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   No database is needed: sessions are AsyncMocks, and the RLS data
       client is replaced by one that records which access token each
       operation was scoped to.

Fixtures:
    ├── mock_db_session:      AsyncMock standing in for AsyncSession
    ├── mock_session_factory: async_sessionmaker stand-in yielding mock_db_session
    ├── data_client:          RecordingDataClient over mock_db_session
    ├── auth_session:         valid AuthSession (expires in 1 hour)
    ├── session_store:        AuthSessionStore mock (async methods)
    ├── auth_headers:         Cookie header carrying auth_session
    ├── cookie_for:           Cookie header factory for any AuthSession
    └── test_client:          HTTPX AsyncClient with dependencies overridden
"""

import os

# Override settings for testing BEFORE any rlsnotes imports
os.environ["SESSION_SECRET"] = "test-session-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from rlsnotes.auth.session import AuthSession, AuthSessionStore, session_cookie
from rlsnotes.config import settings


class RecordingDataClient:
    """
    DataClient stand-in: yields the same mock session for every scope and
    remembers the access token each scope was opened with.
    """

    def __init__(self, session):
        self.session = session
        self.tokens: List[str] = []

    @asynccontextmanager
    async def scoped(self, access_token: str):
        self.tokens.append(access_token)
        yield self.session


def cookie_headers(auth_session: AuthSession) -> dict:
    return {"Cookie": f"{settings.session_cookie_name}={session_cookie.dump(auth_session)}"}


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.one_or_none.return_value = row
    """
    session = AsyncMock()
    # Result objects are synchronous (one_or_none, all, rowcount)
    session.execute = AsyncMock(return_value=MagicMock())
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.__aenter__.return_value = session
    # A truthy __aexit__ would swallow exceptions raised inside `async with`
    session.__aexit__.return_value = False
    return session


@pytest.fixture
def mock_session_factory(mock_db_session):
    return MagicMock(return_value=mock_db_session)


@pytest.fixture
def data_client(mock_db_session):
    return RecordingDataClient(mock_db_session)


@pytest.fixture
def auth_session():
    return AuthSession(
        access_token="access-token-s",
        refresh_token="refresh-token-s",
        user_id="user-1",
        email="user@example.com",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def expiring_auth_session(auth_session):
    return auth_session.model_copy(
        update={"expires_at": datetime.now(timezone.utc) - timedelta(seconds=5)}
    )


@pytest.fixture
def auth_headers(auth_session):
    return cookie_headers(auth_session)


@pytest.fixture
def cookie_for():
    """Factory: Cookie header for an arbitrary AuthSession."""
    return cookie_headers


@pytest.fixture
def session_store():
    return MagicMock(spec=AuthSessionStore)


@pytest_asyncio.fixture
async def test_client(data_client, session_store):
    """
    HTTPX AsyncClient talking to the app through ASGITransport, with the data
    client and session store replaced by test doubles.

    Usage:
        async def test_view(test_client, auth_headers):
            response = await test_client.get("/rls/notes/abc", headers=auth_headers)
    """
    from rlsnotes.auth.session import get_session_store
    from rlsnotes.database import get_data_client
    from rlsnotes.main import app

    app.dependency_overrides[get_data_client] = lambda: data_client
    app.dependency_overrides[get_session_store] = lambda: session_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
