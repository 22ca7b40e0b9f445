"""
PostgreSQL provider implementation backed by psycopg 3.

psycopg speaks the `pyformat` paramstyle, so generated parameter names look
like `%(p0)s`. Rows are returned as dictionaries through psycopg's
`dict_row` factory.
"""
import logging
from typing import TYPE_CHECKING, Any

import psycopg
import sqlalchemy as sa
from dbhelper.exceptions import ConfigurationError
from dbhelper.providers.base import ProviderFactory, register_provider
from psycopg.rows import dict_row

if TYPE_CHECKING:
    from dbhelper.options import ConnectionOptions

logger = logging.getLogger(__name__)


@register_provider('postgresql')
class PostgresProviderFactory(ProviderFactory):
    """PostgreSQL-specific connection factory.
    """

    @property
    def name(self) -> str:
        return 'postgresql'

    @property
    def paramstyle(self) -> str:
        return psycopg.paramstyle

    @classmethod
    def build_connection_string(cls, options: 'ConnectionOptions',
                                url_creator=sa.URL.create) -> str:
        """Build a libpq connection URI from connection parts.
        """
        missing = [f for f in ('hostname', 'username', 'database') if not getattr(options, f)]
        if missing:
            raise ConfigurationError(f'PostgreSQL connections require: {missing}')

        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname

        url = url_creator(
            drivername='postgresql',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )
        return url.render_as_string(hide_password=False)

    def connect(self, connection_string: str) -> psycopg.Connection:
        return psycopg.connect(connection_string, row_factory=dict_row)

    def configure_connection(self, raw_conn: Any) -> None:
        logger.debug(f'Connected to PostgreSQL server version {raw_conn.info.server_version}')
