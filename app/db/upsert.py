# app/db/upsert.py
# "Set on insert" writes keyed on a unique column.
#
# INSERT ... ON CONFLICT (key) DO NOTHING lets the unique index decide races:
# two concurrent writers converge on exactly one row, and the loser learns it
# lost from the rowcount instead of an IntegrityError.

from typing import Any, Dict, Sequence, Type

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.db.base_class import Base


def insert_if_absent(
    db: Session,
    model: Type[Base],
    values: Dict[str, Any],
    index_elements: Sequence[str],
) -> bool:
    """
    Insert a row unless one already exists for the unique `index_elements`.

    Runs inside the caller's transaction. Column defaults declared on the
    model (ids, timestamps) are applied as for a normal insert.

    Returns True if this call inserted the row, False if it already existed.
    Raises ValueError on a dialect without ON CONFLICT.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model.__table__)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model.__table__)
    else:
        raise ValueError(f"insert_if_absent needs ON CONFLICT support; dialect {dialect!r} has none")

    stmt = stmt.values(**values).on_conflict_do_nothing(index_elements=list(index_elements))
    result = db.execute(stmt)
    return result.rowcount == 1
