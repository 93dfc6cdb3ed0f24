"""Document store infrastructure provider."""

from typing import AsyncIterable

from dishka import Scope, provide

from crux.adapter.store import FirestoreDocumentStore
from crux.config import Settings
from crux.domain.repository import DocumentStore
from crux.domain.service import IdentityProvider
from crux.persistence.store import InMemoryDocumentStore
from crux.util.di.base import ProviderBase
from crux.util.time import Clock


class StoreProvider(ProviderBase):
    """Document store provider - concrete, shared by every session."""

    @provide(scope=Scope.APP)
    async def get_document_store(
        self, settings: Settings, clock: Clock, identity: IdentityProvider
    ) -> AsyncIterable[DocumentStore]:
        """Provide the document store selected by ``STORE__BACKEND``.

        ``memory`` keeps documents in process, with fault injection
        available to tests through the concrete type. ``firestore`` talks to
        the REST API, authenticated as the signed-in identity.
        """
        if settings.store.backend != "firestore":
            yield InMemoryDocumentStore(clock=clock)
            return

        store = FirestoreDocumentStore(
            project_id=settings.store.project_id,
            base_url=settings.store.base_url,
            database_id=settings.store.database_id,
            timeout=settings.store.request_timeout_seconds,
            poll_interval=settings.store.poll_interval_seconds,
            token_source=lambda: getattr(identity, "id_token", None),
        )
        yield store
        await store.close()
