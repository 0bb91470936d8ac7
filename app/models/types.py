"""Dialect-agnostic types for SQLite (tests, local dev) and PostgreSQL (production).

PostgreSQL-specific JSONB is not supported by SQLite, so JSON columns use
JSONB on PostgreSQL and plain JSON elsewhere.
"""

from __future__ import annotations

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator


class JSONBCompat(TypeDecorator):
    """Dict/list: JSONB on PostgreSQL, JSON on SQLite."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())
