"""Dialect-aware SQL helpers: atomic insert-or-update and insert-or-ignore.

Both helpers compile to a single ``INSERT … ON CONFLICT`` statement with a
``RETURNING`` clause, so the uniqueness constraints of the table, not a
prior ``SELECT``, decide between insert and update.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .exceptions import StorageError

if TYPE_CHECKING:
    from sqlalchemy import Engine, Row, Table
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

SUPPORTED_DIALECTS = ("sqlite", "postgresql")


def get_dialect(engine: Engine | AsyncEngine) -> str:
    """Return 'sqlite', 'postgresql', or the raw dialect name."""
    # AsyncEngine wraps a sync engine
    sync_engine = getattr(engine, "sync_engine", engine)
    name = sync_engine.dialect.name
    if name in ("postgresql", "postgres"):
        return "postgresql"
    return name


def check_dialect(dialect: str) -> str:
    """Return *dialect* if the upsert helpers support it, else raise StorageError."""
    if dialect not in SUPPORTED_DIALECTS:
        raise StorageError(
            f"Unsupported dialect: {dialect!r}. Expected one of {SUPPORTED_DIALECTS}."
        )
    return dialect


def _insert(dialect: str, table: Table) -> Any:
    if dialect == "postgresql":
        from sqlalchemy.dialects import postgresql as dialect_module
    else:
        from sqlalchemy.dialects import sqlite as dialect_module
    return dialect_module.insert(table)


async def upsert_returning(
    session: AsyncSession,
    dialect: str,
    table: Table,
    values: dict[str, Any],
    conflict_keys: list[str],
    update_keys: list[str],
    returning: list[str],
) -> Row[Any]:
    """Insert *values* or, on a *conflict_keys* collision, update *update_keys*.

    Returns the *returning* columns of the row that was inserted or updated.
    Callers detect an insert by comparing a returned value they generated
    (e.g. the primary key) against the one they passed.
    """
    stmt = _insert(check_dialect(dialect), table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=conflict_keys,
        set_={k: stmt.excluded[k] for k in update_keys},
    ).returning(*(table.c[k] for k in returning))

    result = await session.execute(stmt)
    return result.one()


async def insert_ignore_returning(
    session: AsyncSession,
    dialect: str,
    table: Table,
    values: dict[str, Any],
    returning: list[str],
) -> Row[Any] | None:
    """Insert *values* unless any uniqueness constraint rejects the row.

    Returns the *returning* columns when a row was inserted, ``None`` when
    the insert was skipped because of a conflict.
    """
    stmt = (
        _insert(check_dialect(dialect), table)
        .values(**values)
        .on_conflict_do_nothing()
        .returning(*(table.c[k] for k in returning))
    )
    result = await session.execute(stmt)
    return result.one_or_none()
