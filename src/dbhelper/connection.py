"""
Connection handle produced by a provider factory.

A `Connection` is created unopened: it carries the provider and the
connection string, and only calls the driver's `connect` when `open()` is
called (or when it is entered as a context manager). Every handle owns at
most one DB-API connection; nothing is pooled or shared.
"""
import logging
import time
from typing import TYPE_CHECKING, Any, Self

from dbhelper.exceptions import ConfigurationError

if TYPE_CHECKING:
    from dbhelper.providers.base import ProviderFactory

__all__ = ['Connection']

logger = logging.getLogger(__name__)


class Connection:
    """Wraps a DB-API connection to defer opening and track calls

    1. Opens lazily through the owning provider factory
    2. Tracks command execution counts and timing
    3. Supports context manager protocol for explicit resource management
    4. Delegates attribute access to the live DB-API connection
    """

    def __init__(self, factory: 'ProviderFactory',
                 connection_string: str | None = None) -> None:
        self.factory = factory
        self.connection_string = connection_string
        self.dbapi_connection = None
        self.calls = 0
        self.time = 0.0

    def __enter__(self) -> Self:
        return self.open()

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the open DB-API connection.
        """
        dbapi_connection = self.__dict__.get('dbapi_connection')
        if dbapi_connection is None:
            raise AttributeError(f'{type(self).__name__!r} has no attribute {name!r} (connection not open)')
        return getattr(dbapi_connection, name)

    @property
    def is_open(self) -> bool:
        return self.dbapi_connection is not None

    def open(self) -> Self:
        """Open the underlying driver connection if not already open.
        """
        if self.is_open:
            return self
        if not self.connection_string:
            raise ConfigurationError('The connection string cannot be empty.')

        raw_conn = self.factory.connect(self.connection_string)
        self.factory.configure_connection(raw_conn)
        self.dbapi_connection = raw_conn
        logger.debug(f'Opened {self.factory.name} connection')
        return self

    def cursor(self) -> Any:
        """Get a DB-API cursor, opening the connection on first use
        """
        self.open()
        return self.dbapi_connection.cursor()

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def commit(self) -> None:
        self.dbapi_connection.commit()

    def rollback(self) -> None:
        self.dbapi_connection.rollback()

    def close(self) -> None:
        """Close the driver connection. Safe to call more than once.
        """
        if not self.is_open:
            return
        self.dbapi_connection.close()
        self.dbapi_connection = None
        logger.debug(f'Connection closed: {self.calls} commands in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per command)')
