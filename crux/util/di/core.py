"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from crux.config import (
    ContentSettings,
    DraftSettings,
    PostingSettings,
    RatingSettings,
    Settings,
)
from crux.util.di.base import ProviderBase
from crux.util.time import Clock, SystemClock


class ProdConfigProvider(ProviderBase):
    """Configuration provider - concrete, no mocks needed.

    Settings are loaded from environment variables and the .env file unless
    an explicit ``Settings`` instance is handed in.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__()
        self._settings = settings

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        return self._settings or Settings()

    @provide(scope=Scope.APP)
    def provide_content_settings(self, settings: Settings) -> ContentSettings:
        return settings.content

    @provide(scope=Scope.APP)
    def provide_rating_settings(self, settings: Settings) -> RatingSettings:
        return settings.rating

    @provide(scope=Scope.APP)
    def provide_posting_settings(self, settings: Settings) -> PostingSettings:
        return settings.posting

    @provide(scope=Scope.APP)
    def provide_draft_settings(self, settings: Settings) -> DraftSettings:
        return settings.drafts

    @provide(scope=Scope.APP)
    def provide_clock(self) -> Clock:
        """Provide the wall clock."""
        return SystemClock()
