from contextlib import contextmanager

from flask import current_app
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from leaderboard import db
from leaderboard.errors import StoreError


def upsert(table, values, update):
    """Build a single INSERT .. ON CONFLICT statement for the bound dialect.

    ``update`` receives ``(existing, incoming)`` column collections and
    returns the SET mapping applied when the primary key already exists, so
    merges such as ``max(existing, incoming)`` run inside the store.
    """
    dialect = db.session.get_bind().dialect.name
    if dialect in ('mysql', 'mariadb'):
        stmt = mysql.insert(table).values(**values)
        return stmt.on_duplicate_key_update(**update(table.c, stmt.inserted))
    if dialect == 'postgresql':
        stmt = postgresql.insert(table).values(**values)
    elif dialect == 'sqlite':
        stmt = sqlite.insert(table).values(**values)
    else:
        raise StoreError(f'Unsupported database dialect: {dialect}')
    keys = [column.name for column in table.primary_key.columns]
    return stmt.on_conflict_do_update(index_elements=keys, set_=update(table.c, stmt.excluded))


@contextmanager
def store_errors(tag, message):
    """Turn driver failures into a StoreError carrying a public message."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[{tag}] failed: {exc}")
        raise StoreError(message) from exc
