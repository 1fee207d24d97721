"""Database package with engine and session management."""

from backoffice.db.session import build_engine, build_session_maker, enable_sqlite_savepoints, init_db

__all__ = [
    "build_engine",
    "build_session_maker",
    "enable_sqlite_savepoints",
    "init_db",
]
