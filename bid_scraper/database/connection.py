"""
Database connection management for the bid scraper.

Provides engine and session management using SQLAlchemy. SQLite is the
default backend; any SQLAlchemy URL (e.g. PostgreSQL) can be configured.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import DatabaseConfig, get_config
from .models import Base

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_database_engine(db_config: Optional[DatabaseConfig] = None) -> Engine:
    """Create and configure a database engine for ``db_config``."""
    db_config = db_config or get_config().database
    database_url = db_config.url

    engine_config = {
        "echo": db_config.echo,
        "pool_pre_ping": True,
    }

    if database_url.startswith("sqlite"):
        engine_config["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(database_url):
            # One shared connection, otherwise every session sees an empty database
            engine_config["poolclass"] = StaticPool
    else:
        engine_config["pool_size"] = db_config.pool_size
        engine_config["max_overflow"] = db_config.max_overflow
        engine_config["pool_recycle"] = 3600

    engine = create_engine(database_url, **engine_config)

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Set SQLite pragmas for better performance."""
        if database_url.startswith("sqlite"):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False
    )


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for database sessions with commit/rollback and cleanup."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_database(engine: Engine):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")


def test_database_connection(engine: Engine) -> bool:
    """Test database connection and return success status."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection test failed: {e}")
        return False
