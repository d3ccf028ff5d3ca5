"""
Database Setup

Engine and session factories plus the FastAPI session dependency.
"""

import logging
from functools import lru_cache
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from paranoid.config import get_settings
from paranoid.models import Base

logger = logging.getLogger(__name__)

SessionLocal = sessionmaker(autoflush=False)

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite starts transactions lazily, which breaks SAVEPOINT; let
    # SQLAlchemy emit BEGIN itself instead.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    settings = get_settings()
    url = url or settings.database_url
    kwargs = {"echo": settings.sql_echo if echo is None else echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _MEMORY_URLS:
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)
    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


def init_db(engine: Optional[Engine] = None) -> None:
    """Create tables for every model registered on Base"""
    engine = engine or get_engine()
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        raise


def get_db() -> Iterator[Session]:
    """Get database session"""
    db = SessionLocal(bind=get_engine())
    try:
        yield db
    finally:
        db.close()
