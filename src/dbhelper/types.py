"""
Value and row plumbing shared by the command builder and the converters.

This module provides:
- TypeConverter: normalise bound parameter values (NumPy, pandas) for drivers
- RowAdapter: turn driver rows of any shape into plain dictionaries
- SQLite converters for ISO 8601 date and datetime columns
"""
import datetime
import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

import dateutil.parser
import numpy as np
import pandas as pd

from libb import attrdict

logger = logging.getLogger(__name__)


def _convert_numpy_value(val: Any) -> float | int | bool | datetime.datetime | None:
    """Convert NumPy scalar to Python type."""
    if isinstance(val, np.floating) and np.isnan(val):
        return None

    if isinstance(val, np.datetime64):
        if np.isnat(val):
            return None
        return pd.Timestamp(val).to_pydatetime()

    return val.item()


def unwrap_value(value: Any) -> Any:
    """Return the plain Python equivalent of a NumPy or pandas scalar.

    Nulls of every flavour (NaN, NaT, pd.NA) become None. Values that are
    neither NumPy nor pandas scalars are returned unchanged.
    """
    if value is None:
        return None

    if isinstance(value, np.generic):
        return _convert_numpy_value(value)

    if value is pd.NaT or value is pd.NA:
        return None

    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()

    if isinstance(value, pd.Timedelta):
        return value.to_pytimedelta()

    return value


class TypeConverter:
    """Conversion of Python values into driver-compatible parameter values.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single value to a database-compatible format."""
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return unwrap_value(value)


def column_names(cursor: Any) -> list[str]:
    """Column names from a DB-API cursor description."""
    if cursor.description is None:
        return []
    return [desc[0] for desc in cursor.description]


class RowAdapter:
    """Simple row adapter for converting database rows to dictionaries."""

    def __init__(self, row: Any, columns: Sequence[str] | None = None):
        self.row = row
        self.columns = columns

    def to_dict(self) -> dict[str, Any]:
        """Convert row to dictionary.

        Plain sequences need the column names the adapter was created with.
        """
        # sqlite3.Row
        if hasattr(self.row, 'keys') and callable(self.row.keys):
            return {key: self.row[key] for key in self.row.keys()}  # noqa: SIM118
        # Already a mapping
        if isinstance(self.row, Mapping):
            return dict(self.row)
        # Namedtuple
        if hasattr(self.row, '_asdict'):
            return self.row._asdict()
        if self.columns is None:
            raise ValueError(f'Column names are required to adapt a {type(self.row).__name__} row')
        return dict(zip(self.columns, self.row))

    def get_value(self, key: str | None = None) -> Any:
        """Get a value from the row, the first column when no key is given."""
        if key is not None:
            return self.to_dict()[key]

        if isinstance(self.row, Mapping):
            return next(iter(self.row.values()))
        return self.row[0]

    def to_attrdict(self) -> attrdict:
        return attrdict(self.to_dict())


# SQLite Adapters - Database value converters

def convert_date(val: bytes) -> datetime.date:
    """Convert ISO 8601 date string to date object."""
    return dateutil.parser.isoparse(val.decode()).date()


def convert_datetime(val: bytes) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object."""
    return dateutil.parser.isoparse(val.decode())
