"""
Database module for SQLAlchemy session management and resource persistence.
"""
from textshare.db.session import get_db, init_db, check_db_connection, build_engine, engine, SessionLocal
from textshare.db.repository import ResourceRepository

__all__ = [
    "get_db",
    "init_db",
    "check_db_connection",
    "build_engine",
    "engine",
    "SessionLocal",
    "ResourceRepository",
]
