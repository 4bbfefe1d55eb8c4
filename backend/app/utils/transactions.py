import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from app.db import WRITE_LOCK_OPTION

log = logging.getLogger("transactions")


@contextmanager
def smart_transaction(session: Session, write_lock: bool = False) -> Iterator[Session]:
    """
    Run the enclosed block atomically on `session`.

    If a transaction is already active a SAVEPOINT is opened (begin_nested),
    otherwise a normal transaction is started and committed on exit.
    Any exception rolls the block back and is re-raised unchanged.

    With `write_lock=True` a new outer transaction claims the database write
    lock when it begins (BEGIN IMMEDIATE on sqlite), so concurrent writers
    wait for each other instead of failing on lock upgrade. It has no effect
    when the block joins an already running transaction.

    Usage:
        with smart_transaction(db, write_lock=True):
            ... DB work ...
    """
    nested = session.in_transaction()
    cm = session.begin_nested() if nested else session.begin()
    try:
        with cm:
            if write_lock and not nested:
                session.connection(execution_options={WRITE_LOCK_OPTION: True})
            yield session
    except Exception as exc:
        log.debug("rolled back %s transaction: %s", "nested" if nested else "outer", type(exc).__name__)
        raise
