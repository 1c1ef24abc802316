"""Database configuration and session management."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from grocery.config import Settings

logger = logging.getLogger(__name__)

Base: Any = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the connection pool and hands out sessions.

    Constructed once per process (the API app or a Celery worker) and
    disposed on shutdown.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 20,
        max_overflow: int = 0,
        pool_timeout: int = 30,
        statement_timeout_ms: int = 0,
    ) -> None:
        self.url = url
        self.engine = self._create_engine(
            url, pool_size, max_overflow, pool_timeout, statement_timeout_ms
        )
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )

    @staticmethod
    def _create_engine(
        url: str,
        pool_size: int,
        max_overflow: int,
        pool_timeout: int,
        statement_timeout_ms: int,
    ) -> Engine:
        if url.startswith("sqlite"):
            engine = create_engine(url, connect_args={"check_same_thread": False})
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            return engine

        connect_args = {}
        if statement_timeout_ms and url.startswith("postgresql"):
            connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"

        return create_engine(
            url,
            pool_pre_ping=True,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            connect_args=connect_args,
        )

    def session(self) -> Generator[Session, None, None]:
        """Yield a session that is closed afterwards."""
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        """Create all tables (used for local development and tests)."""
        # Import all models here so they are registered with Base.metadata
        from grocery import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()
        logger.info("Database connection pool disposed")


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that provides a database session from the app's pool."""
    database: Database = request.app.state.database
    yield from database.session()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit the session's work on success, roll it back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
