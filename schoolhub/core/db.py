"""
Engine and session lifecycle for the SchoolHub database.

One engine per process, created lazily from DATABASE_URL and disposed at
shutdown. Sessions are synchronous: repository and transaction calls block
the worker thread that serves the request.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from schoolhub.core.config import settings
from schoolhub.db.models import Base

logger = logging.getLogger(__name__)

_TIMEOUT_SQLSTATES = {"57014", "55P03"}
_TIMEOUT_MARKERS = (
    "statement timeout",
    "canceling statement",
    "lock timeout",
    "database is locked",
)

_engine: Engine | None = None
_sessionmaker: sessionmaker | None = None


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def _enforce_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def is_timeout_error(exc: SQLAlchemyError) -> bool:
    """
    True when the database abandoned the operation because a time bound ran out.

    Covers pool checkout timeouts, PostgreSQL query_canceled (57014) and
    lock_not_available (55P03), and SQLite's "database is locked" once the
    busy timeout has elapsed.
    """
    if isinstance(exc, PoolTimeoutError):
        return True
    if not isinstance(exc, DBAPIError) or exc.orig is None:
        return False
    if getattr(exc.orig, "sqlstate", None) in _TIMEOUT_SQLSTATES:
        return True
    message = str(exc.orig).lower()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """
    Create (but do not cache) an engine for url.

    SQLite enforces foreign keys on every connection and uses the statement
    timeout as its busy timeout; in-memory URLs share a single connection so
    all sessions see the same database. Server databases get a bounded,
    pre-pinged, recycled pool and, for PostgreSQL, a server-side
    statement_timeout.
    """
    timeout = settings.db_statement_timeout_seconds

    if url.startswith("sqlite"):
        options: dict[str, Any] = {
            "connect_args": {"check_same_thread": False, "timeout": timeout},
            "echo": echo,
        }
        if _is_memory_sqlite(url):
            options["poolclass"] = StaticPool
        engine = create_engine(url, **options)
        _enforce_sqlite_foreign_keys(engine)
        return engine

    connect_args: dict[str, Any] = {}
    if url.startswith("postgresql"):
        connect_args = {
            "connect_timeout": 5,
            "options": f"-c statement_timeout={timeout * 1000}",
        }

    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
        connect_args=connect_args,
        echo=echo,
    )


def get_engine() -> Engine:
    """The process-wide engine, built from settings on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url, echo=settings.database_echo)
        logger.info("Database engine created", extra={"dialect": _engine.dialect.name})
    return _engine


def get_sessionmaker() -> sessionmaker:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = sessionmaker(
            bind=get_engine(), autoflush=False, autocommit=False, expire_on_commit=False
        )
    return _sessionmaker


def init_schema(engine: Engine | None = None) -> None:
    """Create any missing tables. No migrations are performed."""
    target = engine or get_engine()
    Base.metadata.create_all(target)
    logger.info("Database schema ensured", extra={"tables": sorted(Base.metadata.tables)})


def reset_engine() -> None:
    """Dispose the pool and forget the cached engine and sessionmaker."""
    global _engine, _sessionmaker
    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _sessionmaker = None


@contextmanager
def get_db() -> Generator[Session]:
    """
    A session for scripts and jobs outside a request:

        with get_db() as db:
            teachers = TeacherRepository(db).get_all()
    """
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


def get_db_session() -> Generator[Session]:
    """FastAPI dependency: one session per request, closed when the request ends."""
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()
