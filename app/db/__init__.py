"""Database package — async SQLAlchemy engine, session factory, Base."""
from app.db.base import Base, async_session_factory, enable_sqlite_savepoints, engine, get_db

__all__ = ["Base", "async_session_factory", "enable_sqlite_savepoints", "engine", "get_db"]
