"""Dialect-aware INSERT ... ON CONFLICT for PostgreSQL (production) and SQLite (tests)."""
from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def upsert_insert(db: AsyncSession, table: Table):
    """Return an ``insert()`` for ``table`` that supports ``on_conflict_do_*``."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(table)
    if dialect == "sqlite":
        return sqlite_insert(table)
    raise NotImplementedError(f"Upsert is not supported on dialect {dialect!r}")


async def insert_default_row(db: AsyncSession, table: Table, key_column: str, **values) -> None:
    """Insert a row with default values unless one already exists for ``key_column``."""
    stmt = upsert_insert(db, table).values(**values).on_conflict_do_nothing(index_elements=[key_column])
    await db.execute(stmt)
