"""Per-session observable state.

Views keep their state in an ``Observable`` instead of mutating shared
structures; the UI renders the current value and re-renders on change.
"""

from typing import Callable, Generic, TypeVar

from crux.domain.repository import Unsubscribe

T = TypeVar("T")


class Observable(Generic[T]):
    """Value holder with change listeners."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._listeners: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Replace the value; listeners run only when it changed."""
        if value == self._value:
            return
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def update(self, change: Callable[[T], T]) -> T:
        """Apply ``change`` to the latest value (read-modify-write)."""
        self.set(change(self._value))
        return self._value

    def subscribe(self, listener: Callable[[T], None]) -> Unsubscribe:
        self._listeners.append(listener)

        def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Unsubscribe(release)
