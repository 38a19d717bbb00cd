# orderledger/config/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.engine import Engine
import sqlite3
import logging
from typing import Any, Dict, Generator
from .settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for the given URL."""
    if database_url.startswith("sqlite"):
        return {
            "echo": settings.DEBUG,
            "connect_args": {"check_same_thread": False, "timeout": 30},
        }
    return {
        "echo": settings.DEBUG,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 10,
        "max_overflow": 20,
        "connect_args": {"connect_timeout": 30},
    }


# Database engine configuration
engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for models
Base = declarative_base()

# Database session dependency
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Creates a new database session for each request.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()

# SQLite-specific configuration
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db() -> None:
    """Create all tables registered on the declarative base."""
    from .. import models  # noqa: F401  registers mappers

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
