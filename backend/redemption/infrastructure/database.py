"""Database Session Manager — async engine and per-request sessions for the code store.

Invariants:
    - Every session rolls back on exception (a failed group insert never half-commits)
    - SQLAlchemy failures surface as StoreError, classified by what the store was doing
    - RedemptionError raised inside a session passes through unchanged
    - Readiness is judged by the code store itself (SqlCodeStore.ping), not here

Design Decisions:
    - Singleton db_manager initialized in the FastAPI lifespan (ADR: no global import side effects)
    - expire_on_commit=False: handlers read records after the store commits
    - Pool sizing only applied to server databases; SQLite uses its own pool class
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from redemption.core.errors import ErrorContext, StoreError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors.
_STORE_FAILURES: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "code row violates a uniqueness or check constraint", "write"),
    (OperationalError, "code store unreachable or locked", "connect"),
    (DBAPIError, "driver rejected the statement", "execute"),
    (SQLAlchemyError, "unexpected store failure", "unknown"),
)


def to_store_error(exc: SQLAlchemyError) -> StoreError:
    """Classify a SQLAlchemy failure as a StoreError."""
    for exc_type, message, operation in _STORE_FAILURES:
        if isinstance(exc, exc_type):
            return StoreError(
                message, operation,
                ErrorContext(debug_info={"exception": type(exc).__name__}),
            )
    raise TypeError(f"not a SQLAlchemy error: {exc!r}")


class DatabaseSessionManager:
    """Owns the engine; hands out sessions that roll back on failure."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = to_store_error(e)
            logger.error(
                f"Code store {error.operation} failure: {e}",
                extra={"error_code": error.code},
            )
            raise error from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
