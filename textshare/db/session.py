"""
Database session management for SQLAlchemy.
Provides connection pooling and session lifecycle management.
"""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator
import logging

from textshare.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str = settings.DATABASE_URL, **overrides) -> Engine:
    """
    Create an engine for the configured database.

    PostgreSQL gets a sized connection pool; SQLite (development and tests)
    gets thread-shareable connections and a busy timeout so concurrent
    writers queue instead of failing.
    """
    if url.startswith("sqlite"):
        options = {
            "connect_args": {"check_same_thread": False, "timeout": 30},
            "echo": False,
        }
    else:
        options = {
            "pool_pre_ping": True,  # Verify connections before using them
            "pool_size": 10,
            "max_overflow": 20,
            "pool_recycle": 3600,
            "echo": False,
        }
    options.update(overrides)
    return create_engine(url, **options)


engine = build_engine()

# Create session factory. Loaded rows stay readable after the repository commits.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function for FastAPI endpoints.
    Provides a database session and ensures cleanup.

    Yields:
        Session: SQLAlchemy database session
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


def init_db(bind: Engine = None) -> None:
    """
    Create all resource tables that do not exist yet.

    NOTE: In production, manage the schema with migrations instead.
    """
    from textshare.models import Base

    logger.info("Initializing database tables...")
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized successfully")


def check_db_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        logger.info("Database connection check: SUCCESS")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection check: FAILED - {e}")
        return False
    finally:
        db.close()
