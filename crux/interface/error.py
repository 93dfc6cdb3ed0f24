"""Interface layer errors and action results.

Every action exposed to the UI returns an ``ActionResult`` instead of
raising: expected failures (validation, authorization, sync, auth) become a
failed result carrying a display message.
"""

import functools
from typing import Any, Awaitable, Callable, TypeVar

import logfire
from pydantic import BaseModel, ConfigDict

from crux.adapter.error import AdapterError
from crux.domain.error import DomainError
from crux.domain.repository import LocalStorageError

# Failures an action reports instead of raising
EXPECTED_ERRORS = (DomainError, AdapterError, LocalStorageError)


class InterfaceError(Exception):
    """Base interface error."""

    pass


class ActionResult(BaseModel):
    """Outcome of a UI action."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    message: str | None = None
    value: Any = None

    @classmethod
    def success(cls, value: Any = None, message: str | None = None) -> "ActionResult":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, message: str) -> "ActionResult":
        return cls(ok=False, message=message)


F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def action(name: str) -> Callable[[F], Callable[..., Awaitable[ActionResult]]]:
    """Wrap an async session method so it returns an ActionResult.

    The wrapped method returns the success value (or an ActionResult, which
    is passed through). Expected errors become failed results.
    """

    def decorator(func: F) -> Callable[..., Awaitable[ActionResult]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> ActionResult:
            try:
                value = await func(*args, **kwargs)
            except EXPECTED_ERRORS as e:
                logfire.warn("Action failed", action=name, error=str(e), kind=type(e).__name__)
                return ActionResult.failure(str(e))
            if isinstance(value, ActionResult):
                return value
            return ActionResult.success(value)

        return wrapper

    return decorator
