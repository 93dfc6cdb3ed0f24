"""Identity provider clients.

``RestIdentityProvider`` talks to an Identity Toolkit style REST API
(``accounts:signInWithPassword``, ``accounts:signUp``,
``accounts:signInWithIdp``). ``MockIdentityProvider`` keeps accounts in
process for development and tests.
"""

from uuid import uuid4

import httpx
import logfire

from crux.adapter.error import AuthError
from crux.domain.model import Identity
from crux.domain.service.auth_service import IdentityProvider
from crux.domain.value import UserId

# Readable messages for the REST API's error codes
ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": "No account found with that email.",
    "INVALID_PASSWORD": "Wrong password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "EMAIL_EXISTS": "An account with that email already exists.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "INVALID_EMAIL": "Enter a valid email address.",
    "MISSING_PASSWORD": "Enter a password.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
    "INVALID_IDP_RESPONSE": "The sign-in provider rejected the credential.",
    "OPERATION_NOT_ALLOWED": "This sign-in method is not enabled.",
}


def error_message(raw: str) -> tuple[str, str]:
    """Split a REST error message into (code, readable message).

    Messages look like ``"EMAIL_NOT_FOUND"`` or
    ``"WEAK_PASSWORD : Password should be at least 6 characters"``.
    """
    code, _, detail = raw.partition(" : ")
    code = code.strip()
    return code, ERROR_MESSAGES.get(code) or detail.strip() or raw


class RestIdentityProvider(IdentityProvider):
    """Identity provider backed by the Identity Toolkit REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        request_uri: str = "http://localhost",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize REST identity provider.

        Args:
            api_key: Project API key
            base_url: API base URL
            timeout: Request timeout in seconds
            request_uri: Request URI sent with federated credentials
            transport: Optional httpx transport (tests)
        """
        super().__init__()
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.request_uri = request_uri
        self._transport = transport
        self._id_token: str | None = None
        self._refresh_token: str | None = None

    async def _call(self, endpoint: str, payload: dict) -> dict:
        """POST to an accounts endpoint.

        Raises:
            AuthError: On an error response or transport failure
        """
        url = f"{self.base_url}/accounts:{endpoint}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url,
                    params={"key": self.api_key},
                    json={**payload, "returnSecureToken": True},
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logfire.error("Identity provider unreachable", endpoint=endpoint, error=str(e))
            raise AuthError("Could not reach the sign-in service. Try again.") from e

        if response.status_code != 200:
            try:
                raw = response.json().get("error", {}).get("message", "")
            except ValueError:
                raw = ""
            code, message = error_message(raw or f"HTTP {response.status_code}")
            logfire.warn(
                "Identity provider rejected request",
                endpoint=endpoint,
                status_code=response.status_code,
                code=code,
            )
            raise AuthError(message, code=code)

        return response.json()

    def _accept(self, data: dict) -> Identity:
        self._id_token = data.get("idToken")
        self._refresh_token = data.get("refreshToken")
        identity = Identity(
            id=UserId(data["localId"]),
            display_name=data.get("displayName") or None,
            email=data.get("email") or None,
            avatar_url=data.get("photoUrl") or data.get("profilePicture") or None,
        )
        self._set_identity(identity)
        return identity

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        data = await self._call("signInWithPassword", {"email": email, "password": password})
        identity = self._accept(data)
        logfire.info("Password sign-in succeeded", user_id=str(identity.id))
        return identity

    async def register_with_password(self, email: str, password: str) -> Identity:
        data = await self._call("signUp", {"email": email, "password": password})
        identity = self._accept(data)
        logfire.info("Account created", user_id=str(identity.id))
        return identity

    async def sign_in_with_federated_provider(
        self, provider_id: str = "google.com", id_token: str | None = None
    ) -> Identity:
        if not id_token:
            raise AuthError("A credential from the sign-in provider is required.")
        data = await self._call(
            "signInWithIdp",
            {
                "postBody": f"id_token={id_token}&providerId={provider_id}",
                "requestUri": self.request_uri,
                "returnIdpCredential": True,
            },
        )
        identity = self._accept(data)
        logfire.info(
            "Federated sign-in succeeded",
            user_id=str(identity.id),
            provider_id=provider_id,
        )
        return identity

    async def sign_out(self) -> None:
        # Tokens are held client-side only
        self._id_token = None
        self._refresh_token = None
        self._set_identity(None)

    @property
    def id_token(self) -> str | None:
        return self._id_token


class MockIdentityProvider(IdentityProvider):
    """In-process identity provider for development and tests.

    Accounts are registered in memory; federated sign-in creates (or reuses)
    an account per provider and token.
    """

    def __init__(self) -> None:
        super().__init__()
        self._accounts: dict[str, tuple[str, Identity]] = {}
        self.unavailable = False  # Simulates a provider outage

    def add_account(
        self,
        email: str,
        password: str,
        display_name: str | None = None,
        user_id: str | None = None,
    ) -> Identity:
        """Register an account without signing in."""
        identity = Identity(
            id=UserId(user_id or uuid4().hex[:28]),
            display_name=display_name,
            email=email,
        )
        self._accounts[email.lower()] = (password, identity)
        return identity

    def _check_available(self) -> None:
        if self.unavailable:
            raise AuthError(
                "Firebase: Error (auth/network-request-failed).", code="network-request-failed"
            )

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        self._check_available()
        account = self._accounts.get(email.lower())
        if account is None:
            raise AuthError(ERROR_MESSAGES["EMAIL_NOT_FOUND"], code="EMAIL_NOT_FOUND")
        stored_password, identity = account
        if stored_password != password:
            raise AuthError(ERROR_MESSAGES["INVALID_PASSWORD"], code="INVALID_PASSWORD")
        self._set_identity(identity)
        return identity

    async def register_with_password(self, email: str, password: str) -> Identity:
        self._check_available()
        if email.lower() in self._accounts:
            raise AuthError(ERROR_MESSAGES["EMAIL_EXISTS"], code="EMAIL_EXISTS")
        if len(password) < 6:
            raise AuthError(ERROR_MESSAGES["WEAK_PASSWORD"], code="WEAK_PASSWORD")
        identity = self.add_account(email, password)
        self._set_identity(identity)
        return identity

    async def sign_in_with_federated_provider(
        self, provider_id: str = "google.com", id_token: str | None = None
    ) -> Identity:
        self._check_available()
        email = f"{id_token or 'mock-user'}@{provider_id}"
        account = self._accounts.get(email.lower())
        identity = (
            account[1]
            if account
            else self.add_account(email, uuid4().hex, display_name="Mock User")
        )
        self._set_identity(identity)
        return identity

    async def sign_out(self) -> None:
        self._set_identity(None)
