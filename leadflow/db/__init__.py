# leadflow/db/__init__.py
"""
Database package for SQLAlchemy setup, session management, and base models.
"""

from leadflow.db.base import Base, TimestampMixin
from leadflow.db.session import atomic, create_database_engine, get_session

__all__ = [
    "Base",
    "TimestampMixin",
    "atomic",
    "create_database_engine",
    "get_session",
]
