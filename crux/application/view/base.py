"""Base classes for reactive views."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from crux.application.store import Observable
from crux.domain.repository import Unsubscribe


class ViewState(BaseModel):
    """Immutable snapshot rendered by the UI."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


S = TypeVar("S", bound=ViewState)


class View(Generic[S]):
    """A view owns its subscriptions and publishes state through ``state``.

    Subclasses open their subscriptions in ``_open``; ``close`` releases them
    all and ``restart`` reopens them (e.g. after an identity change).
    """

    def __init__(self, initial: S) -> None:
        self.state: Observable[S] = Observable(initial)
        self._subscriptions: list[Unsubscribe] = []

    @property
    def current(self) -> S:
        return self.state.value

    def start(self):
        self.close()
        self._open()
        return self

    def restart(self) -> None:
        self.start()

    def _open(self) -> None:
        raise NotImplementedError

    def _track(self, unsubscribe: Unsubscribe) -> None:
        self._subscriptions.append(unsubscribe)

    def close(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for unsubscribe in subscriptions:
            unsubscribe()
