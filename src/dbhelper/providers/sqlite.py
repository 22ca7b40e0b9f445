"""
SQLite provider implementation.

Connections are opened with declared-type detection so `date` and
`datetime` columns come back as Python objects, rows are `sqlite3.Row`
(mapping-like, usable by the row converter), and `check_same_thread` is
disabled so a cursor can be advanced from a worker thread by
`dbhelper.reader.AsyncCursor`.
"""
import datetime
import json
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from dbhelper.exceptions import ConfigurationError
from dbhelper.providers.base import ProviderFactory, register_provider
from dbhelper.types import convert_date, convert_datetime

if TYPE_CHECKING:
    from dbhelper.options import ConnectionOptions

logger = logging.getLogger(__name__)


@register_provider('sqlite')
class SQLiteProviderFactory(ProviderFactory):
    """SQLite-specific connection factory.
    """

    @property
    def name(self) -> str:
        return 'sqlite'

    @property
    def paramstyle(self) -> str:
        return sqlite3.paramstyle

    @classmethod
    def build_connection_string(cls, options: 'ConnectionOptions') -> str:
        """SQLite connection strings are the database path."""
        if not options.database:
            raise ConfigurationError('SQLite connections require a database path')
        return options.database

    def connect(self, connection_string: str) -> sqlite3.Connection:
        return sqlite3.connect(
            connection_string,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            check_same_thread=False,
        )

    def configure_connection(self, raw_conn: Any) -> None:
        """Register adapters and converters, and switch rows to `sqlite3.Row`.
        """
        # Adapters (Python -> SQLite)
        sqlite3.register_adapter(dict, json.dumps)
        sqlite3.register_adapter(list, json.dumps)
        sqlite3.register_adapter(datetime.date, datetime.date.isoformat)
        sqlite3.register_adapter(datetime.datetime, datetime.datetime.isoformat)

        # Converters (SQLite -> Python)
        sqlite3.register_converter('date', convert_date)
        sqlite3.register_converter('datetime', convert_datetime)

        raw_conn.row_factory = sqlite3.Row
