"""Mock providers for testing."""

from .identity import MockIdentityAdapterProvider
from .storage import MockStorageProvider
from .container import build_test_container

__all__ = [
    "MockIdentityAdapterProvider",
    "MockStorageProvider",
    "build_test_container",
]
