"""Dependency injection container."""

from dishka import AsyncContainer, make_async_container

from crux.config import Settings
from crux.util.di import PROVIDERS, get_provider
from crux.util.di.core import ProdConfigProvider


def create_container(settings: Settings | None = None) -> AsyncContainer:
    """Build the production container.

    Args:
        settings: Settings to inject (loaded from the environment if omitted)

    Returns:
        Container wired with the production implementation of every component
    """
    provider_instances = [
        ProdConfigProvider(settings)
        if base is ProdConfigProvider
        else get_provider(base, use_mock=False)()
        for base in PROVIDERS
    ]
    return make_async_container(*provider_instances)
