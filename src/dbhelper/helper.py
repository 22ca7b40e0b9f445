"""
The data-access helper.

`DbHelper` holds a provider factory and a connection string and builds
everything else on demand:

- `create_connection()` - a fresh, unopened connection per call
- `create_command(template, *args)` - driver-native text plus bound parameters
- `fill(cursor, skip, limit, on_row)` / `fill_async(...)` - paged reading
- `get_type_converter(T)` / `get_row_converter(T)` - conversion extension points

The `execute_*` methods compose those pieces: each one opens its own
connection, runs a single command and closes the connection again.
"""
import logging
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import fields
from types import ModuleType
from typing import Any, Self, TypeVar

import pandas as pd
from dbhelper.command import Command, build_command
from dbhelper.connection import Connection
from dbhelper.convert import get_row_converter, get_type_converter
from dbhelper.exceptions import ConfigurationError
from dbhelper.options import ConnectionOptions
from dbhelper.providers import DbapiProviderFactory, ProviderFactory, get_factory
from dbhelper.reader import drive, drive_async
from dbhelper.types import RowAdapter, column_names

from libb import attrdict, load_options

__all__ = ['DbHelper']

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Index rendered by the driver when discovering its placeholder syntax
_PROBE_INDEX = 42


def _lookup_setting(config: Any, name: str) -> Any:
    if config is None:
        return None
    if isinstance(config, Mapping):
        return config.get(name)
    return getattr(config, name, None)


class DbHelper:
    """Data source plus command builder for one driver and connection string.
    """

    def __init__(self, factory: ProviderFactory | ModuleType,
                 connection_string: str) -> None:
        if factory is None:
            raise ConfigurationError('You must provide a provider factory.')
        if not connection_string:
            raise ConfigurationError('The connection string cannot be empty.')

        if not isinstance(factory, ProviderFactory):
            factory = DbapiProviderFactory(factory)

        self._factory = factory
        self._connection_string = connection_string
        self._parameter_format = self._discover_parameter_format()

    @classmethod
    def from_config(cls, name: 'str | Mapping[str, Any] | ConnectionOptions',
                    config: Any | None = None, **kw: Any) -> Self:
        """Create a helper from named configuration.

        Args:
            name: Can be:
                - Name of an entry in `config`
                - Dictionary of options
                - ConnectionOptions object
            config: Configuration object holding named entries (for example a
                module of libb `Setting` objects)
            **kw: Additional keyword arguments to override options
        """
        if isinstance(name, ConnectionOptions):
            options = name
            for field in fields(options):
                kw.pop(field.name, None)
        elif isinstance(name, str) and isinstance(config, Mapping):
            entry = _lookup_setting(config, name)
            if not entry:
                raise ConfigurationError(f'The connection {name!r} does not exist in your configuration.')
            options = ConnectionOptions(**{**entry, **kw})
        else:
            if isinstance(name, str) and not _lookup_setting(config, name):
                raise ConfigurationError(f'The connection {name!r} does not exist in your configuration.')
            options_func = load_options(cls=ConnectionOptions)(lambda o, c: o)
            options = options_func(name, config, **kw)

        return cls(get_factory(options.providername), options.connection_string)

    @property
    def factory(self) -> ProviderFactory:
        return self._factory

    @property
    def connection_string(self) -> str:
        return self._connection_string

    @property
    def parameter_format(self) -> str:
        """Cached `str.format` template for parameter names, e.g. `':p{0}'`."""
        return self._parameter_format

    def _discover_parameter_format(self) -> str:
        """Generalise the driver's placeholder for one index into a template.
        """
        builder = self.factory.create_command_builder()
        placeholder = builder.parameter_placeholder(_PROBE_INDEX)
        escaped = placeholder.replace('{', '{{').replace('}', '}}')
        parameter_format = escaped.replace(str(_PROBE_INDEX), '{0}')
        logger.debug(f'Parameter format for {self.factory.name}: {parameter_format!r}')
        return parameter_format

    def create_connection(self) -> Connection:
        """New unopened connection configured with this helper's connection string.
        """
        connection = self.factory.create_connection()
        connection.connection_string = self.connection_string
        return connection

    def create_command(self, command_text: str, *parameters: Any) -> Command:
        """Build a command from a format template and positional arguments.

        Ordinary arguments are bound as parameters; `RawValue` arguments are
        inserted into the text as is.
        """
        return build_command(command_text, parameters, self.create_parameter_name,
                             self.factory.paramstyle)

    def create_parameter_name(self, index: int) -> str:
        return self._parameter_format.format(index)

    def get_type_converter(self, target: type[T]) -> Callable[[Any], T]:
        return get_type_converter(target)

    def get_row_converter(self, target: type[T]) -> Callable[..., T]:
        return get_row_converter(target)

    def on_execute_command(self, command: Command) -> None:
        """Called right before a command is executed. Logs it by default."""
        logger.debug(f'SQL:\n{command.text}\nargs: {command.args}')

    @staticmethod
    def fill(cursor: Any, skip: int, limit: int, on_row: Callable[[Any], Any]) -> int:
        return drive(cursor, skip, limit, on_row)

    @staticmethod
    async def fill_async(cursor: Any, skip: int, limit: int,
                         on_row: Callable[[Any], Any]) -> int:
        return await drive_async(cursor, skip, limit, on_row)

    def _execute(self, cn: Connection, cursor: Any, command: Command) -> None:
        self.on_execute_command(command)
        start = time.time()
        try:
            command.execute(cursor)
        except Exception:
            logger.error(f'Error with command:\nSQL:\n{command.text}\nargs: {command.args}')
            raise
        finally:
            elapsed = time.time() - start
            cn.addcall(elapsed)
            logger.debug(f'Command time: {elapsed:.4f}s')

    @contextmanager
    def execute_reader(self, command_text: str, *parameters: Any) -> Iterator[Any]:
        """Execute a command and yield its open cursor.

        The cursor and its connection are closed when the block exits.
        """
        command = self.create_command(command_text, *parameters)
        with self.create_connection() as cn:
            cursor = cn.cursor()
            try:
                self._execute(cn, cursor, command)
                yield cursor
            finally:
                cursor.close()

    def execute_non_query(self, command_text: str, *parameters: Any) -> int:
        """Execute a command, commit, and return the affected row count.
        """
        command = self.create_command(command_text, *parameters)
        with self.create_connection() as cn:
            cursor = cn.cursor()
            try:
                self._execute(cn, cursor, command)
                rowcount = cursor.rowcount
                cn.commit()
                return rowcount
            except Exception:
                cn.rollback()
                raise
            finally:
                cursor.close()

    def execute_scalar(self, command_text: str, *parameters: Any,
                       target: type | None = None) -> Any:
        """First column of the first row, or None when there are no rows.
        """
        rows = []
        with self.execute_reader(command_text, *parameters) as cursor:
            columns = column_names(cursor)
            self.fill(cursor, 0, 1, rows.append)
        if not rows:
            return None
        value = RowAdapter(rows[0], columns).get_value()
        return self.get_type_converter(target)(value) if target is not None else value

    def execute_list(self, target: type[T], command_text: str, *parameters: Any,
                     skip: int = 0, limit: int = 0) -> list[T]:
        """Rows materialised as `target` instances through the row converter.
        """
        convert = self.get_row_converter(target)
        results = []
        with self.execute_reader(command_text, *parameters) as cursor:
            columns = column_names(cursor)
            self.fill(cursor, skip, limit, lambda row: results.append(convert(row, columns)))
        return results

    def execute_scalar_list(self, target: type[T], command_text: str, *parameters: Any,
                            skip: int = 0, limit: int = 0) -> list[T]:
        """First column of every row converted to `target`.
        """
        convert = self.get_type_converter(target)
        results = []
        with self.execute_reader(command_text, *parameters) as cursor:
            columns = column_names(cursor)
            self.fill(cursor, skip, limit,
                      lambda row: results.append(convert(RowAdapter(row, columns).get_value())))
        return results

    def execute_dicts(self, command_text: str, *parameters: Any,
                      skip: int = 0, limit: int = 0) -> list[attrdict]:
        """Rows as attribute-accessible dictionaries.
        """
        results = []
        with self.execute_reader(command_text, *parameters) as cursor:
            columns = column_names(cursor)
            self.fill(cursor, skip, limit,
                      lambda row: results.append(RowAdapter(row, columns).to_attrdict()))
        return results

    def execute_dataframe(self, command_text: str, *parameters: Any,
                          skip: int = 0, limit: int = 0) -> pd.DataFrame:
        """Rows as a pandas DataFrame.

        Always returns a DataFrame, never None, with columns preserved for
        empty results.
        """
        records = []
        with self.execute_reader(command_text, *parameters) as cursor:
            columns = column_names(cursor)
            self.fill(cursor, skip, limit,
                      lambda row: records.append(RowAdapter(row, columns).to_dict()))
        if not records:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame.from_records(records, columns=columns)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(factory={self.factory!r})'
