"""Infrastructure layer errors."""

import re

# Error-code decoration added by the identity provider SDK, e.g.
# "Firebase: Error (auth/wrong-password)."
_PROVIDER_PREFIX = re.compile(r"^\s*Firebase:\s*")
_CODE_SUFFIX = re.compile(r"\s*\(auth/[^)]*\)")


def sanitize_auth_message(message: str) -> str:
    """Strip provider decoration from an auth error message for display."""
    cleaned = _CODE_SUFFIX.sub("", _PROVIDER_PREFIX.sub("", message)).strip()
    return cleaned or "Authentication failed"


class AdapterError(Exception):
    """Base infrastructure error."""

    pass


class ProviderError(AdapterError):
    """External provider error."""

    pass


class AuthError(ProviderError):
    """Authentication failed.

    The message is sanitized for display; ``code`` keeps the provider's
    error code when one was reported.
    """

    def __init__(self, message: str, code: str | None = None):
        self.code = code
        super().__init__(sanitize_auth_message(message))
