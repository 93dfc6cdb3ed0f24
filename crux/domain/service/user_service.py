"""User domain service."""

from typing import Callable

import logfire

from crux.domain.error import SyncError
from crux.domain.model import Identity, UserProfile
from crux.domain.repository import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    StoreError,
    Unsubscribe,
    paths,
)
from crux.domain.repository.mappers import doc_to_profile
from crux.domain.value import UserId


class UserService:
    """Domain service for user profile operations."""

    def __init__(self, store: DocumentStore) -> None:
        """Initialize user service.

        Args:
            store: Document store
        """
        self.store = store

    async def mirror_profile(self, identity: Identity) -> None:
        """Mirror the signed-in identity to ``users/{id}``.

        ``createdAt`` is only written when the profile does not exist yet;
        ``lastLoginAt`` is refreshed on every sign-in.

        Raises:
            SyncError: If the profile cannot be read or written
        """
        with logfire.span("user_service.mirror_profile", user_id=str(identity.id)):
            path = paths.user(identity.id)
            try:
                existing = await self.store.get(path)
                data = {
                    "displayName": identity.display_name or identity.author_name,
                    "email": identity.email,
                    "photoURL": identity.avatar_url,
                    "lastLoginAt": SERVER_TIMESTAMP,
                }
                if not existing.exists or existing.get("createdAt") is None:
                    data["createdAt"] = SERVER_TIMESTAMP
                await self.store.set(path, data, merge=True)
            except StoreError as e:
                logfire.error("Profile mirroring failed", path=path, error=str(e))
                raise SyncError("update", path, str(e)) from e

            logfire.info(
                "Profile mirrored",
                user_id=str(identity.id),
                created=not existing.exists,
            )

    async def get_profile(self, user_id: UserId) -> UserProfile | None:
        """Read a user profile.

        Raises:
            SyncError: If the read fails
        """
        with logfire.span("user_service.get_profile", user_id=str(user_id)):
            path = paths.user(user_id)
            try:
                doc = await self.store.get(path)
            except StoreError as e:
                raise SyncError("read", path, str(e)) from e
            profile = doc_to_profile(doc)
            if profile is None:
                logfire.warn("Profile not found", user_id=str(user_id))
            return profile

    def watch_profile(
        self,
        user_id: UserId,
        on_next: Callable[[UserProfile | None], None],
        on_error: Callable[[StoreError], None] | None = None,
    ) -> Unsubscribe:
        """Live view of a user profile."""

        def handle(doc: DocumentSnapshot) -> None:
            on_next(doc_to_profile(doc))

        return self.store.watch_document(paths.user(user_id), handle, on_error)
