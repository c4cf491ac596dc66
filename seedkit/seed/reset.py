"""Backend-aware table enumeration and wipe.

Each supported backend has its own catalog query and its own way of
emptying tables while resetting identity counters:

  postgres  one TRUNCATE ... RESTART IDENTITY CASCADE
  mysql     TRUNCATE per table with foreign key checks disabled
  sqlite    DELETE per table, then clear sqlite_sequence
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seedkit.db.database import session_scope
from seedkit.exceptions import StorageError, UnsupportedBackendError
from seedkit.types import Backend

logger = logging.getLogger(__name__)

# Migration bookkeeping tables survive a reset.
IGNORED_TABLES = frozenset({"migrations", "typeorm_metadata", "alembic_version"})

_DIALECTS = {
    "postgresql": Backend.POSTGRES,
    "postgres": Backend.POSTGRES,
    "mysql": Backend.MYSQL,
    "mariadb": Backend.MYSQL,
    "sqlite": Backend.SQLITE,
}

_TABLE_QUERIES = {
    Backend.POSTGRES: "SELECT tablename FROM pg_tables WHERE schemaname = 'public'",
    Backend.MYSQL: (
        "SELECT table_name AS tableName FROM information_schema.tables "
        "WHERE table_schema = DATABASE()"
    ),
    Backend.SQLITE: "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'",
}


def resolve_backend(dialect_name: str) -> Backend:
    """Map a SQLAlchemy dialect name to a supported backend."""
    backend = _DIALECTS.get((dialect_name or "").lower())
    if backend is None:
        raise UnsupportedBackendError(
            f"Unsupported database type: {dialect_name}",
            dialect=dialect_name or "",
        )
    return backend


def session_backend(session: AsyncSession) -> Backend:
    return resolve_backend(session.get_bind().dialect.name)


async def list_user_tables(session: AsyncSession) -> list[str]:
    """Application tables of the connected database, minus IGNORED_TABLES."""
    backend = session_backend(session)
    result = await session.execute(text(_TABLE_QUERIES[backend]))
    return [row[0] for row in result.all() if row[0] not in IGNORED_TABLES]


async def _truncate_postgres(session: AsyncSession, tables: list[str]) -> None:
    names = ", ".join(f'"public"."{table}"' for table in tables)
    await session.execute(text(f"TRUNCATE TABLE {names} RESTART IDENTITY CASCADE"))


async def _truncate_mysql(session: AsyncSession, tables: list[str]) -> None:
    await session.execute(text("SET FOREIGN_KEY_CHECKS = 0"))
    try:
        for table in tables:
            await session.execute(text(f"TRUNCATE TABLE `{table}`"))
    finally:
        await session.execute(text("SET FOREIGN_KEY_CHECKS = 1"))


async def _truncate_sqlite(session: AsyncSession, tables: list[str]) -> None:
    for table in tables:
        await session.execute(text(f'DELETE FROM "{table}"'))

    # sqlite_sequence only exists once an AUTOINCREMENT table has been created
    result = await session.execute(
        text("SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_sequence'")
    )
    if result.first() is None:
        return
    placeholders = ", ".join(f":t{i}" for i in range(len(tables)))
    await session.execute(
        text(f"DELETE FROM sqlite_sequence WHERE name IN ({placeholders})"),
        {f"t{i}": table for i, table in enumerate(tables)},
    )


_TRUNCATORS = {
    Backend.POSTGRES: _truncate_postgres,
    Backend.MYSQL: _truncate_mysql,
    Backend.SQLITE: _truncate_sqlite,
}


async def reset_database(session: Optional[AsyncSession] = None) -> list[str]:
    """Empty every application table and reset identity counters.

    Returns the tables that were cleared. A database with no application
    tables is left untouched.

    Raises:
        UnsupportedBackendError: dialect is not postgres, mysql/mariadb or sqlite.
        StorageError: a statement failed; the transaction is rolled back.
    """
    async with session_scope(session) as s:
        backend = session_backend(s)
        try:
            tables = await list_user_tables(s)
            if not tables:
                logger.info("[Reset] No tables to reset")
                return []
            await _TRUNCATORS[backend](s, tables)
            await s.commit()
            # rows loaded before the wipe no longer exist
            s.expunge_all()
        except SQLAlchemyError as exc:
            await s.rollback()
            logger.error("[Reset] Failed to reset %s database: %s", backend.value, exc)
            raise StorageError(f"Database reset failed: {exc}", operation="reset_database") from exc

    logger.info("[Reset] Cleared %d table(s) on %s", len(tables), backend.value)
    return tables
