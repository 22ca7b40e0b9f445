"""
Paged, callback-driven reading of forward-only cursors.

A cursor is anything with `fetchone()` returning the next row or None once
exhausted (the DB-API contract). The async variants expect `fetchone()` to
be awaitable instead. The reader only advances the cursor; opening and
closing it is the caller's job.

Skip and limit follow the same rules everywhere:

- `skip` rows are advanced over without being surfaced (`skip < 0` is an
  error raised before the cursor is touched)
- then at most `limit` rows are surfaced, or every remaining row when
  `limit <= 0`
"""
import asyncio
import itertools
import logging
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any

from dbhelper.exceptions import ValidationError

__all__ = [
    'AsyncCursor',
    'aiter_rows',
    'drive',
    'drive_async',
    'iter_rows',
]

logger = logging.getLogger(__name__)


def _advance_plan(skip: int, limit: int) -> Iterator[bool]:
    """One entry per permitted advance: False to discard the row, True to surface it.
    """
    if skip < 0:
        raise ValidationError(f'skip must be zero or higher, got {skip}')
    surfaced = itertools.repeat(True, limit) if limit > 0 else itertools.repeat(True)
    return itertools.chain(itertools.repeat(False, skip), surfaced)


def _iter_plan(cursor: Any, plan: Iterator[bool]) -> Iterator[Any]:
    for surface in plan:
        row = cursor.fetchone()
        if row is None:
            return
        if surface:
            yield row


async def _aiter_plan(cursor: Any, plan: Iterator[bool]) -> AsyncIterator[Any]:
    for surface in plan:
        row = await cursor.fetchone()
        if row is None:
            return
        if surface:
            yield row


def iter_rows(cursor: Any, skip: int = 0, limit: int = 0) -> Iterator[Any]:
    """Iterate the surfaced rows of a blocking cursor.

    Arguments are validated immediately, not on first iteration.
    """
    return _iter_plan(cursor, _advance_plan(skip, limit))


def aiter_rows(cursor: Any, skip: int = 0, limit: int = 0) -> AsyncIterator[Any]:
    """Asynchronously iterate the surfaced rows of an async cursor.

    Arguments are validated immediately, not on first iteration.
    """
    return _aiter_plan(cursor, _advance_plan(skip, limit))


def drive(cursor: Any, skip: int, limit: int, on_row: Callable[[Any], Any]) -> int:
    """Advance `cursor`, calling `on_row` for each surfaced row.

    Returns the number of rows surfaced.
    """
    count = 0
    for row in iter_rows(cursor, skip, limit):
        on_row(row)
        count += 1
    logger.debug(f'Surfaced {count} rows (skip={skip}, limit={limit})')
    return count


async def drive_async(cursor: Any, skip: int, limit: int,
                      on_row: Callable[[Any], Any]) -> int:
    """Suspendable `drive`: awaits each advance, calls `on_row` synchronously.
    """
    count = 0
    async for row in aiter_rows(cursor, skip, limit):
        on_row(row)
        count += 1
    logger.debug(f'Surfaced {count} rows (skip={skip}, limit={limit})')
    return count


class AsyncCursor:
    """Awaitable view of a blocking DB-API cursor.

    Each `fetchone` runs in a worker thread, so the driver connection must
    allow use from threads other than the one that opened it.
    """

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def __getattr__(self, name: str) -> Any:
        """Delegate members to underlying cursor."""
        return getattr(self.cursor, name)

    async def fetchone(self) -> Any:
        return await asyncio.to_thread(self.cursor.fetchone)
