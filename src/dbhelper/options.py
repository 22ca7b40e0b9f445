from dataclasses import dataclass

from dbhelper.exceptions import ConfigurationError
from dbhelper.providers import get_available_providers, get_factory_class
from dbhelper.providers import is_supported_provider

from libb import ConfigOptions, scriptname

__all__ = ['ConnectionOptions']


@dataclass
class ConnectionOptions(ConfigOptions):
    """Options

    supported provider names: `sqlite`, `postgresql`

    Either give `connection_string` directly, or the parts the provider
    needs to build one (`database` for SQLite; `hostname`, `username`,
    `database` and optionally `password`, `port`, `timeout` for PostgreSQL).
    """
    providername: str = 'sqlite'
    connection_string: str = None
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None

    def __post_init__(self):
        if not is_supported_provider(self.providername):
            available = get_available_providers()
            raise ConfigurationError(f'providername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        if not self.connection_string:
            factory_cls = get_factory_class(self.providername)
            self.connection_string = factory_cls.build_connection_string(self)
