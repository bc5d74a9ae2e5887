"""Database session factory and configuration.

Provides database connectivity and session management for quotematch.
Tenant scoping is never attached to the session; every repository call
receives the org_id explicitly.
"""

from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings


def build_engine(database_url: str, busy_timeout: Optional[float] = None) -> Engine:
    """Create an engine for the given URL.

    PostgreSQL gets a connection pool. SQLite gets a busy timeout and
    BEGIN IMMEDIATE transactions, so concurrent writers queue on the
    database lock instead of failing on a shared-to-write lock upgrade.

    Args:
        database_url: SQLAlchemy connection URL
        busy_timeout: Seconds a SQLite writer waits for the lock

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    engine_kwargs = {
        "pool_pre_ping": True,
        "echo": False,
    }

    if database_url.startswith("sqlite"):
        if busy_timeout is None:
            busy_timeout = get_settings().SQLITE_BUSY_TIMEOUT_SECONDS
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": busy_timeout,
        }
        engine = create_engine(database_url, **engine_kwargs)
        _use_immediate_transactions(engine)
        return engine

    engine_kwargs["pool_size"] = 5
    engine_kwargs["max_overflow"] = 10
    return create_engine(database_url, **engine_kwargs)


def _use_immediate_transactions(engine: Engine) -> None:
    """Let SQLAlchemy own transaction demarcation on pysqlite."""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = build_engine(get_settings().DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/decision")
        def get_decision(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
