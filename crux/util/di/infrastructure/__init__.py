"""Infrastructure providers."""

# Import bases
from .identity import IdentityAdapterProvider
from .storage import StorageProvider
from .store import StoreProvider

# Import implementations (needed for __subclasses__())
from .identity import ProdIdentityAdapterProvider  # noqa: F401
from .storage import ProdStorageProvider  # noqa: F401

__all__ = [
    "IdentityAdapterProvider",
    "ProdIdentityAdapterProvider",
    "ProdStorageProvider",
    "StorageProvider",
    "StoreProvider",
]
