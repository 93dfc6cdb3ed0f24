"""Authentication domain service."""

from typing import Callable

import logfire

from crux.domain.error import ValidationError
from crux.domain.model import Identity
from crux.domain.repository import Unsubscribe
from crux.domain.value import UserId


IdentityListener = Callable[[Identity | None], None]


class IdentityProvider:
    """Generic identity provider interface.

    Tracks the signed-in identity and notifies listeners whenever it
    changes. Implementations provide the four sign-in/out flows and call
    ``_set_identity`` with the outcome.
    """

    def __init__(self) -> None:
        self._identity: Identity | None = None
        self._listeners: list[IdentityListener] = []

    def current_identity(self) -> Identity | None:
        return self._identity

    def on_identity_changed(self, listener: IdentityListener) -> Unsubscribe:
        """Register a listener for identity changes.

        Args:
            listener: Called with the new identity (None after sign-out)

        Returns:
            Idempotent disposer
        """
        self._listeners.append(listener)

        def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Unsubscribe(release)

    def _set_identity(self, identity: Identity | None) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        for listener in list(self._listeners):
            listener(identity)

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        """Sign in with email and password.

        Raises:
            AuthError: On bad credentials or provider failure
        """
        raise NotImplementedError

    async def register_with_password(self, email: str, password: str) -> Identity:
        """Create an account and sign in.

        Raises:
            AuthError: If the account cannot be created
        """
        raise NotImplementedError

    async def sign_in_with_federated_provider(
        self, provider_id: str = "google.com", id_token: str | None = None
    ) -> Identity:
        """Sign in with a federated identity (e.g. Google).

        Args:
            provider_id: Federated provider id
            id_token: Credential issued by the federated provider

        Raises:
            AuthError: If the provider rejects the credential
        """
        raise NotImplementedError

    async def sign_out(self) -> None:
        raise NotImplementedError


class AuthService:
    """Domain service for authentication operations.

    Fronts the identity provider: validates input before any round-trip and
    exposes the active identity to the rest of the domain.
    """

    def __init__(self, identity_provider: IdentityProvider) -> None:
        """Initialize auth service.

        Args:
            identity_provider: Identity provider implementation
        """
        self.identity_provider = identity_provider

    @property
    def current_identity(self) -> Identity | None:
        return self.identity_provider.current_identity()

    @property
    def current_user_id(self) -> UserId | None:
        identity = self.current_identity
        return identity.id if identity else None

    def on_identity_changed(self, listener: IdentityListener) -> Unsubscribe:
        return self.identity_provider.on_identity_changed(listener)

    @staticmethod
    def _check_credentials(email: str, password: str) -> None:
        if not email.strip() or "@" not in email:
            raise ValidationError("Enter a valid email address")
        if not password:
            raise ValidationError("Enter a password")

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        """Sign in with email and password.

        Raises:
            ValidationError: If email or password is blank
            AuthError: If the provider rejects the credentials
        """
        with logfire.span("auth_service.sign_in_with_password"):
            self._check_credentials(email, password)
            identity = await self.identity_provider.sign_in_with_password(
                email.strip(), password
            )
            logfire.info("Signed in with password", user_id=str(identity.id))
            return identity

    async def register_with_password(self, email: str, password: str) -> Identity:
        """Register a new account and sign in.

        Raises:
            ValidationError: If email or password is blank
            AuthError: If the provider refuses the registration
        """
        with logfire.span("auth_service.register_with_password"):
            self._check_credentials(email, password)
            identity = await self.identity_provider.register_with_password(
                email.strip(), password
            )
            logfire.info("Account registered", user_id=str(identity.id))
            return identity

    async def sign_in_with_federated_provider(
        self, provider_id: str = "google.com", id_token: str | None = None
    ) -> Identity:
        with logfire.span(
            "auth_service.sign_in_with_federated_provider", provider_id=provider_id
        ):
            identity = await self.identity_provider.sign_in_with_federated_provider(
                provider_id=provider_id, id_token=id_token
            )
            logfire.info(
                "Signed in with federated provider",
                user_id=str(identity.id),
                provider_id=provider_id,
            )
            return identity

    async def sign_out(self) -> None:
        with logfire.span("auth_service.sign_out", user_id=str(self.current_user_id)):
            await self.identity_provider.sign_out()
            logfire.info("Signed out")
