"""Base classes for dependency injection providers."""

from typing import ClassVar, Literal

from dishka import Provider

# Components with a production and a mock implementation
Component = Literal["identity", "storage"]


class DependencyInjectionError(Exception):
    """A provider could not be resolved for a component."""

    def __init__(self, component: str, use_mock: bool) -> None:
        self.component = component
        self.use_mock = use_mock
        kind = "mock" if use_mock else "production"
        super().__init__(f"No {kind} implementation for {component}")


class ProviderBase(Provider):
    """Base for all CRUX providers.

    Mockable components declare an abstract base carrying
    ``__mock_component__`` and two subclasses, one of them flagged with
    ``__is_mock__``. Concrete providers have no subclasses.
    """

    __mock_component__: ClassVar[Component | None] = None
    __is_mock__: ClassVar[bool] = False
