"""Async SQLAlchemy engine and session factory.

The engine is created on first use so importing seedkit never requires the
database driver of the configured URL.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from seedkit.config import config
from seedkit.exceptions import StorageError

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    global _engine, _session_factory
    if _engine is None:
        _engine = create_async_engine(config.database_url, echo=config.debug)
        _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    return _engine


def async_session() -> AsyncSession:
    """New session bound to the configured database."""
    get_engine()
    return _session_factory()


@asynccontextmanager
async def session_scope(session: Optional[AsyncSession] = None) -> AsyncIterator[AsyncSession]:
    """Yield *session* unchanged, or open (and close) one from the factory.

    Callers that pass a session keep ownership of it.
    """
    if session is not None:
        yield session
        return
    async with async_session() as owned:
        yield owned


@asynccontextmanager
async def transaction(session: Optional[AsyncSession], operation: str) -> AsyncIterator[AsyncSession]:
    """Run one seed operation as a single commit.

    Rolls back on any error. SQLAlchemy errors are wrapped in StorageError
    tagged with *operation*; everything else propagates unchanged.
    """
    async with session_scope(session) as s:
        try:
            yield s
            await s.commit()
        except SQLAlchemyError as exc:
            await s.rollback()
            raise StorageError(f"{operation} failed: {exc}", operation=operation) from exc
        except Exception:
            await s.rollback()
            raise


async def init_db():
    """Create all tables. Used by the CLI against fresh databases."""
    from seedkit.db.models import Base
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
