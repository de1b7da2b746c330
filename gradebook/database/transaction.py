"""
Transaction helpers

Repository methods commit on their own. These helpers cover the two cases
where that is not enough:

- ``transaction``: several writes that must succeed or fail together.
- ``savepoint``: one unit inside a larger transaction that may fail on its
  own without discarding its siblings (bulk grade rows, alert upserts that
  race on the unique key).
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, SessionTransaction

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, description: str = "transaction") -> Iterator[Session]:
    """
    Commit everything done inside the block, or roll all of it back.

    Usage:
        with transaction(db, "replace plan weights"):
            db.add(...)
            db.add(...)
    """
    try:
        yield db
        db.commit()
        logger.debug("Transaction committed", extra={"description": description})
    except Exception:
        db.rollback()
        logger.warning("Transaction rolled back", extra={"description": description})
        raise


@contextmanager
def savepoint(db: Session, description: str = "savepoint") -> Iterator[SessionTransaction]:
    """
    Run the block inside a SAVEPOINT.

    On error only the work of the block is rolled back and the exception is
    re-raised for the caller to record; the enclosing transaction stays usable.
    """
    try:
        with db.begin_nested() as nested:
            yield nested
    except Exception:
        logger.debug("Savepoint rolled back", extra={"description": description})
        raise
