"""
Driver-agnostic data-access helper for DB-API 2.0 drivers.

Commands are written with `str.format` slots and bound in the driver's
native placeholder syntax:

    helper = DbHelper(sqlite3, 'app.db')
    helper.execute_list(User, 'select * from users where age > {0}', 30)

Rows are read through a skip/limit/callback loop (`drive`, `drive_async`)
and converted with `convert_scalar` and `convert_row`.
"""
__version__ = '0.1.0'

from dbhelper.command import BoundParameter, Command, RawValue
from dbhelper.connection import Connection
from dbhelper.convert import FieldBinder, convert_row, convert_scalar
from dbhelper.convert import get_field_binder, get_row_converter
from dbhelper.convert import get_type_converter
from dbhelper.exceptions import ConfigurationError, DatabaseError
from dbhelper.exceptions import TypeConversionError, ValidationError
from dbhelper.helper import DbHelper
from dbhelper.options import ConnectionOptions
from dbhelper.providers import DbapiProviderFactory, PlaceholderNamer
from dbhelper.providers import ProviderFactory, get_available_providers
from dbhelper.providers import get_factory, register_provider
from dbhelper.reader import AsyncCursor, aiter_rows, drive, drive_async
from dbhelper.reader import iter_rows

__all__ = [
    'DbHelper',
    'ConnectionOptions',
    'Connection',
    'Command',
    'BoundParameter',
    'RawValue',
    'ProviderFactory',
    'DbapiProviderFactory',
    'PlaceholderNamer',
    'register_provider',
    'get_factory',
    'get_available_providers',
    'drive',
    'drive_async',
    'iter_rows',
    'aiter_rows',
    'AsyncCursor',
    'convert_scalar',
    'convert_row',
    'FieldBinder',
    'get_field_binder',
    'get_type_converter',
    'get_row_converter',
    'DatabaseError',
    'ConfigurationError',
    'ValidationError',
    'TypeConversionError',
]
