"""
Database Persistence Layer - Atomic Upsert.

============================================================
PURPOSE
============================================================
INSERT ... ON CONFLICT DO UPDATE keyed by a unique constraint.

Used for:
- tutor_daily_aggregates on (tutor_id, date)
- scores on (tutor_id, score_type, score_date) for ths/tcrs

PostgreSQL and SQLite use the native statement, so concurrent
writers for the same key cannot create duplicates. Other dialects
fall back to query-then-branch inside the caller's transaction.

============================================================
"""

import logging
from typing import Any, Dict, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def upsert(
    session: Session,
    model: Type[ModelT],
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> ModelT:
    """
    Insert a row or update the row sharing its conflict key.

    Args:
        session: Open ORM session (caller owns the transaction)
        model: Mapped class
        values: Column values for the row
        conflict_columns: Columns of the unique constraint
        update_columns: Columns overwritten when the key exists

    Returns:
        The persisted ORM instance, refreshed from the database
    """
    dialect = session.get_bind().dialect.name

    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        return _query_then_branch(session, model, values, conflict_columns, update_columns)

    stmt = dialect_insert(model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: stmt.excluded[column] for column in update_columns},
    )
    session.execute(stmt)

    return _select_by_key(session, model, values, conflict_columns)


def _select_by_key(
    session: Session,
    model: Type[ModelT],
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> ModelT:
    query = select(model).execution_options(populate_existing=True)
    for column in conflict_columns:
        query = query.where(getattr(model, column) == values[column])
    return session.execute(query).scalar_one()


def _query_then_branch(
    session: Session,
    model: Type[ModelT],
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> ModelT:
    logger.debug(f"Dialect has no native upsert, using query-then-branch for {model.__name__}")

    query = select(model)
    for column in conflict_columns:
        query = query.where(getattr(model, column) == values[column])
    existing = session.execute(query).scalar_one_or_none()

    if existing is None:
        instance = model(**values)
        session.add(instance)
        session.flush()
        return instance

    for column in update_columns:
        setattr(existing, column, values[column])
    session.flush()
    return existing


__all__ = ["upsert"]
