"""Base use case."""

from abc import ABC, abstractmethod
from typing import Any

from crux.domain.error import NotAuthorizedError
from crux.domain.model import Identity
from crux.domain.service import AuthService


class BaseUseCase(ABC):
    """Base use case for orchestrating domain services."""

    @abstractmethod
    async def execute(self, request: Any) -> Any:
        pass


def require_identity(auth_service: AuthService, action: str, resource: str) -> Identity:
    """Return the signed-in identity.

    Raises:
        NotAuthorizedError: If nobody is signed in
    """
    identity = auth_service.current_identity
    if identity is None:
        raise NotAuthorizedError(action, resource)
    return identity
