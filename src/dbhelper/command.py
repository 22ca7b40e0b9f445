"""
Templated command construction.

Command text is written with `str.format` slots (`{0}`, `{1}`, ...). Each
ordinary argument is bound as a parameter whose driver-native name is
substituted into its slot; a `RawValue` argument is substituted verbatim
and never bound:

    helper.create_command('select * from {0} where id = {1}', RawValue('users'), 7)
    # sqlite:   select * from users where id = ?          args: (7,)
    # psycopg:  select * from users where id = %(p1)s     args: {'p1': 7}
"""
import logging
import re
import string
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from dbhelper.providers.base import NAMED_PARAMSTYLES, PERCENT_PARAMSTYLES
from dbhelper.types import TypeConverter

__all__ = ['RawValue', 'BoundParameter', 'Command', 'build_command', 'escape_percent',
           'slot_order']

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
_UNESCAPED_PERCENT = re.compile(r'(?<!%)%(?!%)')


@dataclass(frozen=True, slots=True)
class RawValue:
    """Driver-native text inserted into a command without parameter binding.

    Never wrap untrusted input: the value reaches the driver as SQL.
    """
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class BoundParameter:
    """A named parameter bound to the argument at `position`."""
    name: str
    value: Any
    position: int

    @property
    def key(self) -> str:
        """Bare parameter name as used in a DB-API parameter mapping."""
        match = _IDENTIFIER.search(self.name)
        return match.group(0) if match else self.name


@dataclass(slots=True)
class Command:
    """Driver-native command text plus its bound parameters."""
    text: str
    parameters: tuple[BoundParameter, ...] = ()
    paramstyle: str = 'qmark'
    slots: tuple[int, ...] = field(default=())

    @property
    def args(self) -> dict[str, Any] | tuple[Any, ...]:
        """The DB-API parameter object for `cursor.execute`.

        Named paramstyles get a mapping; positional paramstyles get the
        values in the order their slots appear in the template.
        """
        if self.paramstyle in NAMED_PARAMSTYLES:
            return {p.key: p.value for p in self.parameters}
        by_position = {p.position: p.value for p in self.parameters}
        return tuple(by_position[i] for i in self.slots if i in by_position)

    def execute(self, cursor: Any) -> Any:
        """Execute on a DB-API cursor."""
        if self.parameters:
            return cursor.execute(self.text, self.args)
        return cursor.execute(self.text)


def slot_order(template: str) -> tuple[int, ...]:
    """Argument positions referenced by a format template, in order of appearance.

    Automatic numbering (`{}`) counts like `str.format` does. Named fields
    are left out.
    """
    order = []
    auto = 0
    for _, field_name, _, _ in string.Formatter().parse(template):
        if field_name is None:
            continue
        key = re.split(r'[.\[]', field_name, maxsplit=1)[0]
        if key == '':
            order.append(auto)
            auto += 1
        elif key.isdigit():
            order.append(int(key))
    return tuple(order)


def escape_percent(text: str) -> str:
    """Double every bare `%` so `format`/`pyformat` drivers read it literally.

    Already doubled `%%` is left alone.
    """
    if '%' not in text:
        return text
    return _UNESCAPED_PERCENT.sub('%%', text)


def build_command(template: str, args: Sequence[Any],
                  parameter_name: Callable[[int], str],
                  paramstyle: str) -> Command:
    """Render a template and its arguments into a `Command`.

    Without arguments the template is used verbatim, so literal braces need
    no escaping. With arguments, `str.format` errors (such as an `IndexError`
    for a slot with no argument) propagate to the caller.

    When parameters are bound for a `format`/`pyformat` driver, literal `%`
    in the template and in `RawValue` text is doubled.
    """
    if not args:
        return Command(template, (), paramstyle)

    parameters = []
    for position, arg in enumerate(args):
        if not isinstance(arg, RawValue):
            name = parameter_name(position)
            parameters.append(BoundParameter(name, TypeConverter.convert_value(arg), position))

    escape = escape_percent if parameters and paramstyle in PERCENT_PARAMSTYLES else str
    names = {p.position: p.name for p in parameters}
    values = [names[i] if i in names else escape(arg.value) for i, arg in enumerate(args)]

    text = escape(template).format(*values)
    return Command(text, tuple(parameters), paramstyle, slot_order(template))
