"""Unit tests for provider selection and the test container."""

import pytest

from crux.config import PostingSettings, Settings
from crux.domain.repository import LocalStorage
from crux.persistence.local import FileLocalStorage, InMemoryLocalStorage
from crux.util.di import (
    DependencyInjectionError,
    IdentityAdapterProvider,
    ProdDomainProvider,
    ProviderBase,
    get_provider,
)
from crux.util.di.container import create_container
from tests.di import build_test_container
from tests.di.identity import MockIdentityAdapterProvider


class TestGetProvider:
    def test_concrete_provider_used_as_is(self):
        assert get_provider(ProdDomainProvider) is ProdDomainProvider

    def test_mock_selected_for_mockable_component(self):
        assert get_provider(IdentityAdapterProvider, use_mock=True) is MockIdentityAdapterProvider


class TestBuildTestContainer:
    """Tests for selective unmocking."""

    def test_unknown_component_rejected(self):
        with pytest.raises(ValueError, match="Unknown components"):
            build_test_container(unmock={"database"})

    @pytest.mark.asyncio
    async def test_storage_mocked_by_default(self):
        container = build_test_container()

        async with container() as request_container:
            storage = await request_container.get(LocalStorage)

        await container.close()
        assert isinstance(storage, InMemoryLocalStorage)

    @pytest.mark.asyncio
    async def test_unmocked_storage_uses_file(self, tmp_path, monkeypatch):
        # Arrange
        monkeypatch.setenv("STORAGE__LOCAL_STORAGE_PATH", str(tmp_path / "local.json"))
        container = build_test_container(unmock={"storage"})

        # Act
        async with container() as request_container:
            storage = await request_container.get(LocalStorage)
            storage.set("theme-preference", "starry")

        await container.close()

        # Assert
        assert isinstance(storage, FileLocalStorage)
        assert (tmp_path / "local.json").exists()


class TestMissingImplementation:
    def test_missing_mock_reported_with_component(self):
        # Arrange
        class OnlyProdProvider(ProviderBase):
            __mock_component__ = "identity"

        class ProdOnly(OnlyProdProvider):
            __is_mock__ = False

        # Act / Assert
        with pytest.raises(DependencyInjectionError, match="No mock implementation for identity") as exc:
            get_provider(OnlyProdProvider, use_mock=True)
        assert exc.value.component == "identity"
        assert exc.value.use_mock is True


class TestCreateContainer:
    @pytest.mark.asyncio
    async def test_explicit_settings_injected(self):
        # Arrange
        settings = Settings(environment="test", posting=PostingSettings(cooldown_hours=1))
        container = create_container(settings)

        # Act
        resolved = await container.get(Settings)
        posting = await container.get(PostingSettings)
        await container.close()

        # Assert
        assert resolved is settings
        assert posting.cooldown_hours == 1
