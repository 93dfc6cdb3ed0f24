"""Application configuration."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class ObservabilitySettings(BaseModel):
    """Observability configuration for Logfire."""

    # Logfire API token (optional - if not set, logs only go to console)
    # Can be set via OBSERVABILITY__LOGFIRE_TOKEN env var
    logfire_token: str | None = None

    # Whether to send telemetry to Logfire cloud
    # If None, will auto-determine: sends if token is present, otherwise console-only
    send_to_logfire: bool | None = None


class ContentSettings(BaseModel):
    """Length limits for user-authored content."""

    title_max_length: int = 144
    content_max_length: int = 2048
    comment_max_length: int = 2048


class RatingSettings(BaseModel):
    """Rating scale configuration.

    Cruxes and sub-cruxes are rated on a closed integer scale.
    0 means "no relevance", 11 means "guaranteed best future".
    """

    min_value: int = 0
    max_value: int = 11


class PostingSettings(BaseModel):
    """Posting cadence configuration."""

    # Minimum interval between two posts by the same identity
    cooldown_hours: float = 24.0

    # How often the remaining wait is recomputed for display
    countdown_interval_seconds: float = 1.0


class DraftSettings(BaseModel):
    """Draft persistence configuration."""

    key_prefix: str = "drafts-"
    guest_key: str = "guest"

    # Suffix of the per-identity key holding deletions not yet confirmed remotely
    pending_deletions_suffix: str = "-deleted"

    # Upper bound on how long navigation/logout waits for an auto-save
    autosave_timeout_seconds: float = 5.0


class StorageSettings(BaseModel):
    """Local persistent storage configuration."""

    local_storage_path: Path = Path.home() / ".crux" / "local_storage.json"
    theme_key: str = "theme-preference"
    default_theme: Literal["clean", "starry"] = "clean"


class StoreSettings(BaseModel):
    """Remote document store configuration."""

    # "memory" keeps documents in process (development and tests)
    backend: Literal["memory", "firestore"] = "memory"
    project_id: str = "crux-dev"
    database_id: str = "(default)"
    base_url: str = "https://firestore.googleapis.com/v1"
    request_timeout_seconds: float = 10.0

    # Live queries are refreshed by polling over REST
    poll_interval_seconds: float = 2.0


class AuthSettings(BaseModel):
    """Identity provider configuration."""

    # API key for the identity toolkit REST API
    api_key: str = "CHANGE_ME_IN_PRODUCTION"
    base_url: str = "https://identitytoolkit.googleapis.com/v1"
    request_timeout_seconds: float = 10.0

    # Request URI sent with federated sign-in credentials
    federated_request_uri: str = "http://localhost"


class FeedSettings(BaseModel):
    """Feed presentation configuration."""

    # Show example cruxes when the live feed cannot be read
    fallback_enabled: bool = True
    default_sort: Literal["recency", "top_rated", "most_rated"] = "recency"
    tag_feed_sort: Literal["recency", "top_rated", "most_rated"] = "top_rated"
    profile_sort: Literal["recency", "top_rated", "most_rated"] = "top_rated"
    comment_sort: Literal["recency", "top_rated", "most_rated"] = "top_rated"


class Settings(BaseSettings):
    """Application settings.

    Configuration is driven by environment variables and an optional .env
    file. Nested values use a double underscore, e.g.:

        POSTING__COOLDOWN_HOURS=24
        AUTH__API_KEY=...
        STORE__BACKEND=firestore
        STORAGE__LOCAL_STORAGE_PATH=/var/lib/crux/local.json
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # Allows POSTING__COOLDOWN_HOURS syntax
    )

    environment: Literal["test", "development", "staging", "production"] = "development"
    debug: bool = False

    # Nested settings
    observability: ObservabilitySettings = ObservabilitySettings()
    content: ContentSettings = ContentSettings()
    rating: RatingSettings = RatingSettings()
    posting: PostingSettings = PostingSettings()
    drafts: DraftSettings = DraftSettings()
    storage: StorageSettings = StorageSettings()
    auth: AuthSettings = AuthSettings()
    store: StoreSettings = StoreSettings()
    feed: FeedSettings = FeedSettings()

