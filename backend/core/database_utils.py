# backend/core/database_utils.py

from typing import Iterable, Mapping, Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_statement(
    db: Session,
    model,
    values: Mapping[str, Any],
    conflict_columns: Iterable[str],
    update_columns: Iterable[str],
):
    """
    Build an ``INSERT ... ON CONFLICT (...) DO UPDATE`` statement for ``model``.

    ``conflict_columns`` must match a unique constraint. Only
    ``update_columns`` are overwritten on conflict; with none, the existing
    row is left as is.
    """
    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Upsert is not supported on {dialect}")

    stmt = insert(model).values(**values)
    update_columns = list(update_columns)
    if not update_columns:
        return stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))

    return stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: stmt.excluded[column] for column in update_columns},
    )
