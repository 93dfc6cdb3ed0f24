"""Identity provider infrastructure providers."""

from dishka import Scope, provide

from crux.adapter.identity import RestIdentityProvider
from crux.config import Settings
from crux.domain.service import IdentityProvider
from crux.util.di.base import ProviderBase


class IdentityAdapterProvider(ProviderBase):
    """Identity component base."""

    __mock_component__ = "identity"


class ProdIdentityAdapterProvider(IdentityAdapterProvider):
    """Production identity provider using the REST identity toolkit."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_identity_provider(self, settings: Settings) -> IdentityProvider:
        """Provide REST identity provider.

        Returns:
            Identity provider bound to the configured API key
        """
        return RestIdentityProvider(
            api_key=settings.auth.api_key,
            base_url=settings.auth.base_url,
            timeout=settings.auth.request_timeout_seconds,
            request_uri=settings.auth.federated_request_uri,
        )
