"""
Generic conversion of database values and rows into Python types.

`convert_scalar(value, target)` coerces one column value to `target`:

    convert_scalar('42', int)          # 42
    convert_scalar(Decimal('1.5'), float)
    convert_scalar('2024-01-31', datetime.date)
    convert_scalar('abc', int)         # TypeConversionError

`convert_row(row, target)` builds a default instance of `target` and sets
every field whose name matches a column (case-insensitively), coercing each
value with `convert_scalar` against the field's annotation. Columns without
a field are ignored and fields without a column keep their defaults.

Writable fields are discovered once per class by a `FieldBinder`: dataclass
fields that take part in `__init__`, otherwise public class annotations,
properties with a setter, plain class attributes and the attributes a
default instance sets in `__init__`. Unannotated names convert as `Any`.
"""
import dataclasses
import datetime
import enum
import inspect
import logging
import threading
import types
import typing
import uuid
from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Any, TypeVar

import cachetools
import dateutil.parser
from dbhelper.exceptions import TypeConversionError
from dbhelper.types import RowAdapter, unwrap_value

__all__ = [
    'FieldBinder',
    'convert_row',
    'convert_scalar',
    'get_field_binder',
    'get_row_converter',
    'get_type_converter',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')

_TRUE_STRINGS = frozenset({'true', 't', 'yes', 'y', 'on', '1'})
_FALSE_STRINGS = frozenset({'false', 'f', 'no', 'n', 'off', '0'})
_BINARY_TYPES = (bytes, bytearray, memoryview)


def _decode(value: Any) -> Any:
    if isinstance(value, _BINARY_TYPES):
        return bytes(value).decode()
    return value


def _to_int(value: Any) -> int:
    value = _decode(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f'{value!r} has a fractional part')
        return int(value)
    if isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise ValueError(f'{value!r} has a fractional part')
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f'cannot convert {type(value).__name__} to int')


def _to_float(value: Any) -> float:
    value = _decode(value)
    if isinstance(value, int | float | Decimal):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise TypeError(f'cannot convert {type(value).__name__} to float')


def _to_decimal(value: Any) -> Decimal:
    value = _decode(value)
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int | Decimal):
        return Decimal(value)
    if isinstance(value, float | str):
        return Decimal(str(value).strip())
    raise TypeError(f'cannot convert {type(value).__name__} to Decimal')


def _to_str(value: Any) -> str:
    if isinstance(value, _BINARY_TYPES):
        return bytes(value).decode()
    if isinstance(value, datetime.date | datetime.time):
        return value.isoformat()
    return str(value)


def _to_bool(value: Any) -> bool:
    value = _decode(value)
    if isinstance(value, int | float | Decimal):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f'{value!r} is not a boolean string')
    raise TypeError(f'cannot convert {type(value).__name__} to bool')


def _to_date(value: Any) -> datetime.date:
    value = _decode(value)
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return dateutil.parser.isoparse(value.strip()).date()
    raise TypeError(f'cannot convert {type(value).__name__} to date')


def _to_datetime(value: Any) -> datetime.datetime:
    value = _decode(value)
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return dateutil.parser.isoparse(value.strip())
    raise TypeError(f'cannot convert {type(value).__name__} to datetime')


def _to_time(value: Any) -> datetime.time:
    value = _decode(value)
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, str):
        return datetime.time.fromisoformat(value.strip())
    raise TypeError(f'cannot convert {type(value).__name__} to time')


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, _BINARY_TYPES):
        return bytes(value)
    if isinstance(value, str):
        return value.encode()
    raise TypeError(f'cannot convert {type(value).__name__} to bytes')


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, _BINARY_TYPES) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    if isinstance(value, str):
        return uuid.UUID(value.strip())
    raise TypeError(f'cannot convert {type(value).__name__} to UUID')


_SCALAR_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    int: _to_int,
    float: _to_float,
    Decimal: _to_decimal,
    str: _to_str,
    bool: _to_bool,
    datetime.date: _to_date,
    datetime.datetime: _to_datetime,
    datetime.time: _to_time,
    bytes: _to_bytes,
    uuid.UUID: _to_uuid,
}


def _union_arms(target: Any) -> tuple[Any, ...] | None:
    """Non-None members of a Union/Optional target, None if not a union."""
    if typing.get_origin(target) in {typing.Union, types.UnionType}:
        return tuple(arg for arg in typing.get_args(target) if arg is not type(None))
    return None


def _to_enum(value: Any, target: type[enum.Enum]) -> enum.Enum:
    try:
        return target(value)
    except ValueError:
        if isinstance(value, str) and value in target.__members__:
            return target[value]
        raise


def convert_scalar(value: Any, target: Any) -> Any:
    """Coerce a single database value to `target`.

    None (and NumPy/pandas nulls) convert to None for every target.
    """
    if target is Any or target is object:
        return value

    arms = _union_arms(target)
    if arms is not None:
        if unwrap_value(value) is None:
            return None
        for arm in arms:
            try:
                return convert_scalar(value, arm)
            except TypeConversionError:
                continue
        raise TypeConversionError(f'Cannot convert {value!r} to any of {arms}')

    value = unwrap_value(value)
    if value is None or type(value) is target:
        return value

    converter = _SCALAR_CONVERTERS.get(target)
    try:
        if converter is not None:
            return converter(value)
        if inspect.isclass(target) and issubclass(target, enum.Enum):
            return _to_enum(value, target)
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise TypeConversionError(
            f'Cannot convert {type(value).__name__} value {value!r} to {getattr(target, "__name__", target)}: {exc}'
        ) from exc

    if inspect.isclass(target) and isinstance(value, target):
        return value
    raise TypeConversionError(
        f'Cannot convert {type(value).__name__} value {value!r} to {getattr(target, "__name__", target)}'
    )


def _resolve_hints(target: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(target)
    except (NameError, TypeError) as exc:
        logger.debug(f'Unresolvable annotations on {target.__name__}, using Any: {exc}')
        return {}


def _is_member(value: Any) -> bool:
    """Methods, descriptors and nested classes are not data fields."""
    return (callable(value)
            or inspect.isclass(value)
            or isinstance(value, property | classmethod | staticmethod))


class FieldBinder:
    """Writable fields of a class, matched case-insensitively by name.
    """

    def __init__(self, target: type) -> None:
        if not inspect.isclass(target):
            raise TypeConversionError(f'Row conversion target must be a class, got {target!r}')
        self.target = target
        self.is_dataclass = dataclasses.is_dataclass(target)
        self.fields = self._discover_fields()

    def _discover_fields(self) -> dict[str, tuple[str, Any]]:
        hints = _resolve_hints(self.target)
        fields: dict[str, tuple[str, Any]] = {}

        if self.is_dataclass:
            for f in dataclasses.fields(self.target):
                if f.init:
                    fields[f.name.lower()] = (f.name, hints.get(f.name, Any))
            return fields

        class_vars = {name for name, annotation in hints.items()
                      if typing.get_origin(annotation) is typing.ClassVar}
        for name, annotation in hints.items():
            if name.startswith('_') or name in class_vars:
                continue
            fields[name.lower()] = (name, annotation)

        for name, member in inspect.getmembers(self.target, lambda m: isinstance(m, property)):
            if member.fset is not None and not name.startswith('_'):
                returns = _resolve_hints(member.fget).get('return', Any) if member.fget else Any
                fields.setdefault(name.lower(), (name, returns))

        # unannotated class attributes, then attributes set by __init__
        for klass in reversed(self.target.__mro__[:-1]):
            for name, value in vars(klass).items():
                if name.startswith('_') or name in class_vars or _is_member(value):
                    continue
                fields.setdefault(name.lower(), (name, Any))
        for name, value in getattr(self.create(), '__dict__', {}).items():
            if not name.startswith('_') and not callable(value):
                fields.setdefault(name.lower(), (name, hints.get(name, Any)))
        return fields

    def create(self) -> Any:
        """Default instance of the target."""
        try:
            return self.target()
        except TypeError as exc:
            raise TypeConversionError(f'{self.target.__name__} must be default-constructible: {exc}') from exc

    def bind(self, values: dict[str, Any]) -> Any:
        """New instance populated from a column-name -> value mapping.

        The first value that cannot be converted aborts the whole row.
        """
        changes = {}
        for column, value in values.items():
            match = self.fields.get(str(column).lower())
            if match is None:
                continue
            name, annotation = match
            try:
                changes[name] = convert_scalar(value, annotation)
            except TypeConversionError as exc:
                raise TypeConversionError(f'Column {column!r} -> {self.target.__name__}.{name}: {exc}') from exc

        instance = self.create()
        if self.is_dataclass:
            return dataclasses.replace(instance, **changes)
        for name, value in changes.items():
            setattr(instance, name, value)
        return instance


@cachetools.cached(cache=cachetools.LRUCache(maxsize=256), lock=threading.RLock())
def get_field_binder(target: type) -> FieldBinder:
    """Cached `FieldBinder` for a class."""
    binder = FieldBinder(target)
    logger.debug(f'Bound {len(binder.fields)} fields for {target.__name__}')
    return binder


def convert_row(row: Any, target: type[T], columns: Sequence[str] | None = None) -> T:
    """Materialise `target` from one row.

    `row` may be a mapping, a `sqlite3.Row`, a namedtuple, or a plain
    sequence when `columns` names its values.
    """
    return get_field_binder(target).bind(RowAdapter(row, columns).to_dict())


def get_type_converter(target: type[T]) -> Callable[[Any], T]:
    """Converter for single column values."""
    def converter(value: Any) -> T:
        return convert_scalar(value, target)
    return converter


def get_row_converter(target: type[T]) -> Callable[..., T]:
    """Converter for whole rows; takes the row and optional column names."""
    binder = get_field_binder(target)

    def converter(row: Any, columns: Sequence[str] | None = None) -> T:
        return binder.bind(RowAdapter(row, columns).to_dict())
    return converter
