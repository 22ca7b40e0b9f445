"""
Provider factory registry.
"""
from functools import lru_cache

from dbhelper.exceptions import ConfigurationError
from dbhelper.providers.base import _PROVIDER_REGISTRY
from dbhelper.providers.base import CommandBuilder as CommandBuilder
from dbhelper.providers.base import DbapiProviderFactory as DbapiProviderFactory
from dbhelper.providers.base import PlaceholderNamer as PlaceholderNamer
from dbhelper.providers.base import ProviderFactory as ProviderFactory
from dbhelper.providers.base import register_provider as register_provider
from dbhelper.providers.postgres import PostgresProviderFactory as PostgresProviderFactory
from dbhelper.providers.sqlite import SQLiteProviderFactory as SQLiteProviderFactory


def _validate_provider(name: str) -> None:
    """Raise ConfigurationError if provider is not registered."""
    if name not in _PROVIDER_REGISTRY:
        available = list(_PROVIDER_REGISTRY.keys())
        raise ConfigurationError(f'Unsupported provider: {name}. Available: {available}')


@lru_cache(maxsize=8)
def get_factory(name: str) -> ProviderFactory:
    """Get the shared factory instance for a registered provider name."""
    _validate_provider(name)
    return _PROVIDER_REGISTRY[name]()


def get_available_providers() -> list[str]:
    """Return list of registered provider names."""
    return list(_PROVIDER_REGISTRY.keys())


def is_supported_provider(name: str) -> bool:
    """Check if a provider is registered."""
    return name in _PROVIDER_REGISTRY


def get_factory_class(name: str) -> type[ProviderFactory]:
    """Get the factory class for a provider without instantiating."""
    _validate_provider(name)
    return _PROVIDER_REGISTRY[name]
