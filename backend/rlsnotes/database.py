"""
RLS Notes: Database Session Management
========================================

What:  Async SQLAlchemy engine, session factory, and the row-level-security
       scoped data client used by every note query.
How:   Creates an async engine with connection pooling. `DataClient.scoped()`
       opens a transaction and binds the caller's access token to it with
       `set_config('request.access_token', ..., true)`, so the RLS policies on
       "Note" only admit the rows owned by that token's user.
When:  Engine is created at module import; scoped sessions are per operation.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from rlsnotes.config import settings

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    echo=settings.log_level == "DEBUG",
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after the scoped
# transaction commits (rows are rendered after the session closes)
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object that Alembic reads for migrations.
    """
    pass


# ── RLS-Scoped Data Client ────────────────────────────────────────────────

# Transaction-local GUC read by the request_user_id() SQL function
# (see alembic/versions/001_create_note_rls.py)
ACCESS_TOKEN_SETTING = "request.access_token"


class DataClient:
    """
    Executes queries on behalf of one access token under row-level security.

    Every note query goes through `scoped()`; there is no unscoped
    accessor for the "Note" table. RLS is forced on the table, so a query
    without a bound token sees zero rows.

    Usage:
        async with data_client.scoped(auth_session.access_token) as db:
            result = await db.execute(select(Note.title).where(Note.id == note_id))
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def scoped(self, access_token: str) -> AsyncIterator[AsyncSession]:
        """
        Yield a session whose single transaction is bound to `access_token`.

        Commits when the block exits normally; rolls back and re-raises
        on any error. The setting is transaction-local (`is_local=true`),
        so a pooled connection never carries one user's token into the
        next checkout.
        """
        async with self._session_factory() as session:
            try:
                await session.execute(
                    text("SELECT set_config(:name, :token, true)"),
                    {"name": ACCESS_TOKEN_SETTING, "token": access_token},
                )
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()


data_client = DataClient(async_session_factory)


def get_data_client() -> DataClient:
    """FastAPI dependency returning the process-wide RLS data client."""
    return data_client


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
