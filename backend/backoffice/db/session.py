"""Database engine and session configuration."""

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

# Register all models with SQLAlchemy (required for relationship resolution and create_all)
import backoffice.models  # noqa: F401


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN on SQLite so SAVEPOINT/ROLLBACK TO work.

    The sqlite3 driver defers BEGIN until the first DML statement, which breaks
    nested transactions. Turning off its implicit handling and emitting BEGIN
    ourselves is the workaround documented by SQLAlchemy.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine for the given URL.

    Pool sizing only applies to server databases; SQLite gets the savepoint fix.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(url, future=True, **kwargs)
        enable_sqlite_savepoints(engine)
        return engine

    return create_async_engine(
        url,
        echo=False,  # SQL logging controlled via structlog configuration
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=300,  # Recycle connections after 5 minutes
        **kwargs,
    )



def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for an engine; objects stay readable after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
