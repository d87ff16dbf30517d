from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from weather_sync.extensions import db

_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def upsert_rows(model, rows, conflict_columns, update_columns=None):
    """INSERT ... ON CONFLICT (conflict_columns) DO UPDATE for one or more rows.

    Rows replace any existing row with the same natural key. The caller owns
    the transaction. Returns the number of rows sent.
    """
    if isinstance(rows, dict):
        rows = [rows]
    if not rows:
        return 0

    dialect = db.session.get_bind(mapper=model.__mapper__).dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Upsert is not supported for dialect {dialect!r}")

    if update_columns is None:
        update_columns = [c for c in rows[0] if c not in conflict_columns]

    stmt = insert(model.__table__).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: stmt.excluded[column] for column in update_columns},
    )
    db.session.execute(stmt)
    return len(rows)
