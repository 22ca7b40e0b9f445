import pathlib
import site

import pytest
from dbhelper.providers import get_factory

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_factory_cache():
    """Give every test its own provider factory instances."""
    get_factory.cache_clear()
    yield
    get_factory.cache_clear()


pytest_plugins = [
    'tests.fixtures.cursors',
    'tests.fixtures.sqlite',
]
