"""Identity provider adapters."""

from crux.adapter.identity.client import MockIdentityProvider, RestIdentityProvider

__all__ = ["MockIdentityProvider", "RestIdentityProvider"]
