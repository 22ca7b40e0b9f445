"""
In-memory cursors for reader tests.

Each cursor records how many times it was advanced so tests can check the
exact position a reader leaves it in.

Usage:
    def test_paging(make_cursor):
        cursor = make_cursor(5)
        drive(cursor, 1, 2, rows.append)
        assert cursor.advances == 3
"""
import asyncio

import pytest


class ListCursor:
    """Blocking forward-only cursor over a list of rows."""

    def __init__(self, rows):
        self.rows = list(rows)
        self.advances = 0
        self.closed = False

    def fetchone(self):
        self.advances += 1
        if self.advances > len(self.rows):
            return None
        return self.rows[self.advances - 1]

    def close(self):
        self.closed = True


class AsyncListCursor(ListCursor):
    """Async forward-only cursor; yields to the event loop on every advance."""

    async def fetchone(self):
        await asyncio.sleep(0)
        return ListCursor.fetchone(self)


def _rows(count):
    return [{'id': i, 'name': f'row{i}'} for i in range(count)]


@pytest.fixture
def make_cursor():
    """Factory for blocking cursors holding `count` rows."""
    def factory(count):
        return ListCursor(_rows(count))
    return factory


@pytest.fixture
def make_async_cursor():
    """Factory for async cursors holding `count` rows."""
    def factory(count):
        return AsyncListCursor(_rows(count))
    return factory
