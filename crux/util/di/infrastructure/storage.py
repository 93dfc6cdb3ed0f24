"""Local storage infrastructure providers."""

from dishka import Scope, provide

from crux.config import Settings
from crux.domain.repository import LocalStorage
from crux.persistence.local import FileLocalStorage
from crux.util.di.base import ProviderBase


class StorageProvider(ProviderBase):
    """Local storage component base."""

    __mock_component__ = "storage"


class ProdStorageProvider(StorageProvider):
    """Production local storage backed by a JSON file."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_local_storage(self, settings: Settings) -> LocalStorage:
        """Provide file local storage."""
        return FileLocalStorage(settings.storage.local_storage_path)
