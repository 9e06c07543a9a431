# Overview: Row locking and transaction scoping shared by the write paths.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write_transaction()
    takes the database write lock up front instead.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Start the transaction a locked read-modify-write runs in.

    PostgreSQL opens it implicitly on the first statement and the FOR UPDATE
    lock does the serializing. SQLite has no row locks, so take the reserved
    lock immediately and let concurrent writers queue on the busy timeout.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def transaction_scope():
    """
    Run a block as one unit of work on the request's session.

    Commits when the block exits normally. Any exception rolls back every
    statement issued inside the block and is re-raised unchanged; nothing is
    retried. The connection goes back to the pool when the app context ends.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
