from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from leadflow.core.config import settings
from leadflow.core.exceptions import BaseAPIException, ConflictError, DatabaseError
from leadflow.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Global engine instance
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def install_connection_hooks(target: AsyncEngine) -> None:
    """Per-connection setup for the dialect in use."""

    @event.listens_for(target.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        if target.dialect.name == "sqlite":
            # SQLite ignores ON DELETE rules unless asked
            cursor.execute("PRAGMA foreign_keys=ON")
        elif target.dialect.name == "postgresql":
            cursor.execute("SET search_path TO public")
        cursor.close()


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def create_database_engine() -> AsyncEngine:
    """Create and configure the async database engine."""
    global engine, AsyncSessionLocal

    if engine is not None:
        return engine

    if settings.is_sqlite:
        engine = create_async_engine(
            settings.database_url,
            poolclass=StaticPool,
            echo=settings.debug,
            connect_args={"check_same_thread": False},
        )
    elif settings.is_testing:
        # Use NullPool for tests to ensure clean state
        engine = create_async_engine(
            settings.database_url,
            poolclass=NullPool,
            echo=settings.debug,
        )
    else:
        engine = create_async_engine(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
            pool_pre_ping=True,
            echo=settings.debug,
            connect_args={
                "command_timeout": 60,
                "server_settings": {"application_name": "leadflow_api"},
            },
        )

    install_connection_hooks(engine)
    AsyncSessionLocal = build_session_factory(engine)

    logger.info(
        "database.engine.created",
        dialect=engine.dialect.name,
        pool_size=settings.database_pool_size,
        testing=settings.is_testing,
    )

    return engine


async def dispose_engine() -> None:
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


async def _apply_statement_timeout(session: AsyncSession) -> None:
    if session.bind is not None and session.bind.dialect.name == "postgresql":
        await session.execute(
            text(f"SET statement_timeout = {settings.statement_timeout_seconds * 1000}")
        )


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection."""
    if AsyncSessionLocal is None:
        create_database_engine()

    session = AsyncSessionLocal()

    try:
        await _apply_statement_timeout(session)
        yield session

    except SQLAlchemyError as e:
        logger.error("database.session_error", error=str(e))
        await session.rollback()
        raise DatabaseError(message="Database session error") from e

    finally:
        await session.close()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Run a unit of work: commit on success, roll back on any failure.

    Storage failures surface as DatabaseError (ConflictError for constraint
    violations); domain errors propagate unchanged.
    """
    try:
        yield session
        await session.commit()

    except IntegrityError as e:
        await session.rollback()
        logger.warning("database.integrity_error", error=str(e.orig))
        raise ConflictError(message="Operation conflicts with existing data") from e

    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("database.transaction_error", error=str(e))
        raise DatabaseError(message="Database transaction failed") from e

    except BaseAPIException:
        await session.rollback()
        raise

    except Exception:
        await session.rollback()
        logger.error("database.transaction_aborted", exc_info=True)
        raise


async def health_check() -> dict:
    """Check database health."""
    if engine is None:
        create_database_engine()

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            row = result.fetchone()
            return {
                "status": "healthy" if row and row[0] == 1 else "unhealthy",
                "dialect": engine.dialect.name,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

    except Exception as e:
        logger.error("database.health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
