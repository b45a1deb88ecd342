"""Async engine and per-request sessions for the Whisperbox backend."""
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import get_settings

settings = get_settings()
is_sqlite = settings.database_url.startswith("sqlite+")
connect_args = {"check_same_thread": False} if is_sqlite else {}
engine = create_async_engine(settings.database_url, future=True, echo=False, connect_args=connect_args)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

if is_sqlite:

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
        # messages.user_id cascades only when SQLite enforces foreign keys
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async SQLAlchemy session per request.

    Each handler commits its own single write; anything left pending when the
    request ends is rolled back by the session context manager.
    """

    async with AsyncSessionLocal() as session:
        yield session
