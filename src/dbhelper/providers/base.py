"""
Base provider interface for driver access.

A provider factory is the single handle the helper holds on a driver. It
knows how to open a DB-API connection from a connection string, which
paramstyle the driver speaks, and how the driver renders a placeholder for
a parameter at a given index (the `PlaceholderNamer` capability). Concrete
providers register themselves by name so configuration can refer to them
as plain strings.
"""
import logging
from abc import ABC, abstractmethod
from types import ModuleType
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from dbhelper.connection import Connection
from dbhelper.exceptions import ConfigurationError

if TYPE_CHECKING:
    from dbhelper.options import ConnectionOptions

logger = logging.getLogger(__name__)

# Registry of provider name -> factory class
# Defined here to avoid circular imports (concrete providers import from base)
_PROVIDER_REGISTRY: dict[str, type['ProviderFactory']] = {}

# Placeholder renderings per DB-API paramstyle, `{index}` is the parameter index
_PLACEHOLDER_TEMPLATES: dict[str, str] = {
    'qmark': '?',
    'format': '%s',
    'named': ':p{index}',
    'pyformat': '%(p{index})s',
}

NAMED_PARAMSTYLES = frozenset({'named', 'pyformat'})
POSITIONAL_PARAMSTYLES = frozenset({'qmark', 'format'})

# Paramstyles whose drivers read a bare `%` in the command text as a placeholder
PERCENT_PARAMSTYLES = frozenset({'format', 'pyformat'})


def register_provider(name: str):
    """Decorator to register a provider factory class under a name.

    Usage:
        @register_provider('sqlite')
        class SQLiteProviderFactory(ProviderFactory):
            ...
    """
    def decorator(cls: type['ProviderFactory']) -> type['ProviderFactory']:
        _PROVIDER_REGISTRY[name] = cls
        return cls
    return decorator


@runtime_checkable
class PlaceholderNamer(Protocol):
    """Renders the driver-native placeholder for a parameter index."""

    def parameter_placeholder(self, index: int) -> str:
        ...


class CommandBuilder:
    """Placeholder rendering for one DB-API paramstyle.
    """

    def __init__(self, paramstyle: str) -> None:
        if paramstyle not in _PLACEHOLDER_TEMPLATES:
            supported = sorted(_PLACEHOLDER_TEMPLATES)
            raise ConfigurationError(f'Unsupported paramstyle: {paramstyle}. Supported: {supported}')
        self.paramstyle = paramstyle
        self._template = _PLACEHOLDER_TEMPLATES[paramstyle]

    def parameter_placeholder(self, index: int) -> str:
        return self._template.format(index=index)


class ProviderFactory(ABC):
    """Base class for driver-specific connection factories.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider identifier (e.g., 'sqlite', 'postgresql')."""

    @property
    @abstractmethod
    def paramstyle(self) -> str:
        """Return the DB-API paramstyle of the driver."""

    @abstractmethod
    def connect(self, connection_string: str) -> Any:
        """Open a raw DB-API connection.

        Args:
            connection_string: Driver-native connection string

        Returns
            Open DB-API connection
        """

    def configure_connection(self, raw_conn: Any) -> None:
        """Apply driver-specific settings to a freshly opened connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @classmethod
    def build_connection_string(cls, options: 'ConnectionOptions') -> str:
        """Build a driver-native connection string from connection parts.

        Args:
            options: ConnectionOptions without an explicit connection string

        Returns
            Connection string accepted by `connect`
        """
        raise ConfigurationError(f'Provider {cls.__name__} requires an explicit connection_string')

    def create_connection(self) -> Connection:
        """Create a new, unopened connection with no connection string set.
        """
        return Connection(self)

    def create_command_builder(self) -> PlaceholderNamer:
        """Return the placeholder-rendering facility for this driver.
        """
        return CommandBuilder(self.paramstyle)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(name={self.name!r}, paramstyle={self.paramstyle!r})'


class DbapiProviderFactory(ProviderFactory):
    """Provider factory for any DB-API 2.0 module.

    Uses the module's own `paramstyle` and passes the connection string to
    `module.connect` as its only argument.
    """

    def __init__(self, module: ModuleType, name: str | None = None) -> None:
        if not callable(getattr(module, 'connect', None)):
            raise ConfigurationError(f'{module!r} is not a DB-API module (no connect())')
        self.module = module
        self._name = name or module.__name__
        self._paramstyle = getattr(module, 'paramstyle', 'qmark')

    @property
    def name(self) -> str:
        return self._name

    @property
    def paramstyle(self) -> str:
        return self._paramstyle

    def connect(self, connection_string: str) -> Any:
        return self.module.connect(connection_string)
