"""
TextCollector — Commit Step ("save if dirty") and Store Error Guards
=====================================================================

What:  The single commit step every mutating service operation ends with,
       plus the guards that turn driver errors into the exception hierarchy.
How:   save() commits only when the session holds pending work: ORM changes
       (new/dirty/deleted objects) or Core statements flagged with
       mark_pending(). Any store rejection during a write, whether from the
       commit, an INSERT or an autoflush, is rolled back and re-raised as
       PersistenceError. A failed read becomes DatabaseError.
Who:   SnippetService, TagService, transfer_service, sample_data.
"""

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.exceptions import DatabaseError, PersistenceError

logger = logging.getLogger(__name__)

_PENDING_KEY = "textcollector.pending_writes"


def mark_pending(db: AsyncSession) -> None:
    """Flag writes made with Core statements, which the ORM does not track."""
    db.info[_PENDING_KEY] = True


def has_pending_changes(db: AsyncSession) -> bool:
    return bool(db.new or db.dirty or db.deleted or db.info.get(_PENDING_KEY))


@asynccontextmanager
async def write_guard(db: AsyncSession, operation: Optional[str] = None) -> AsyncIterator[None]:
    """
    Wrap the statements of a mutating operation.

    On a store error the whole transaction is rolled back, so nothing of the
    operation is written, and PersistenceError carries the driver's reason.

    Usage:
        async with write_guard(db, "add_tag"):
            await db.execute(stmt)
    """
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error("Write failed during %s: %s", operation or "save", str(e))
        await db.rollback()
        db.info.pop(_PENDING_KEY, None)
        raise PersistenceError(reason=str(e), operation=operation) from e


@contextmanager
def read_guard(operation: str) -> Iterator[None]:
    """Re-raise a failed query as DatabaseError; the detail goes to the log."""
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error("Read failed during %s: %s", operation, str(e))
        raise DatabaseError(context={"operation": operation, "reason": str(e)}) from e


async def save(db: AsyncSession, operation: Optional[str] = None) -> bool:
    """
    Commit if and only if there is something to commit.

    Returns:
        True if a commit was issued, False if there was nothing pending.

    Raises:
        PersistenceError: the store rejected the commit (already rolled back).
    """
    if not has_pending_changes(db):
        return False
    try:
        async with write_guard(db, operation):
            await db.commit()
    finally:
        db.info.pop(_PENDING_KEY, None)
    return True
