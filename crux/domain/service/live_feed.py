"""Live feed subscriptions.

A live feed watches a primary collection (posts, or the comments of a post)
and, for every entity in the current result, a secondary rating feed whose
aggregate is merged back into that entity.

Each primary emission starts a new generation: the previous generation's
secondary subscriptions are cancelled and every secondary callback checks
the generation it was opened in before touching the entity list, so a late
callback from a replaced generation is dropped instead of applied.
"""

from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

import logfire

from crux.domain.error import SubscriptionError
from crux.domain.model import RatedModel
from crux.domain.repository import (
    DocumentSnapshot,
    DocumentStore,
    Query,
    QuerySnapshot,
    StoreError,
    Unsubscribe,
)
from crux.domain.value import EMPTY_AGGREGATE, RatingAggregate, SubjectRef

from .aggregation import AggregationEngine

E = TypeVar("E", bound=RatedModel)


@dataclass
class _FeedState(Generic[E]):
    """Mutable state of one live feed."""

    name: str
    epoch: int = 0
    entities: list[E] = field(default_factory=list)
    secondaries: list[Unsubscribe] = field(default_factory=list)
    primary: Unsubscribe | None = None
    cancelled: bool = False

    def rotate(self) -> int:
        """Cancel the current generation's secondaries and start a new one."""
        previous, self.secondaries = self.secondaries, []
        for unsubscribe in previous:
            unsubscribe()
        self.epoch += 1
        return self.epoch


class LiveFeedSubscription:
    """Domain service that merges a primary feed with per-entity rating feeds."""

    def __init__(self, store: DocumentStore, aggregation_engine: AggregationEngine) -> None:
        """Initialize live feed subscription service.

        Args:
            store: Document store
            aggregation_engine: Opens the per-entity rating feeds
        """
        self.store = store
        self.aggregation_engine = aggregation_engine

    def watch(
        self,
        query: Query,
        parse: Callable[[DocumentSnapshot], E | None],
        secondary_for: Callable[[E], SubjectRef],
        on_snapshot: Callable[[list[E]], None],
        on_error: Callable[[SubscriptionError], None] | None = None,
        fallback: Callable[[], Sequence[E]] | None = None,
        include: Callable[[E], bool] | None = None,
        name: str = "feed",
    ) -> Unsubscribe:
        """Watch a primary query and keep each entity's rating aggregate live.

        Args:
            query: Primary collection query
            parse: Maps a document to an entity (None skips the document)
            secondary_for: Rating subject of an entity
            on_snapshot: Receives the full entity list after every change
            on_error: Notified when the primary feed fails
            fallback: Static entities shown when the primary feed fails
            include: Client-side filter applied before secondaries are opened
            name: Label used in logs

        Returns:
            Idempotent disposer for the primary and every open secondary
        """
        state: _FeedState[E] = _FeedState(name=name)

        def emit() -> None:
            on_snapshot(list(state.entities))

        def handle_primary(snapshot: QuerySnapshot) -> None:
            if state.cancelled:
                return
            entities: list[E] = []
            for doc in snapshot:
                entity = parse(doc)
                if entity is None:
                    continue
                if include is not None and not include(entity):
                    continue
                entities.append(entity.with_rating(EMPTY_AGGREGATE))

            epoch = state.rotate()
            state.entities = entities
            emit()

            for entity in entities:
                state.secondaries.append(
                    self.aggregation_engine.subscribe(
                        secondary_for(entity),
                        lambda aggregate, entity_id=entity.id: handle_secondary(
                            epoch, entity_id, aggregate
                        ),
                        lambda error, entity_id=entity.id: handle_secondary_error(
                            epoch, entity_id, error
                        ),
                    )
                )
            logfire.debug(
                "Live feed generation started",
                feed=name,
                epoch=epoch,
                entities=len(entities),
            )

        def handle_secondary(epoch: int, entity_id: str, aggregate: RatingAggregate) -> None:
            if state.cancelled or epoch != state.epoch:
                logfire.debug(
                    "Dropping stale rating update",
                    feed=name,
                    epoch=epoch,
                    current_epoch=state.epoch,
                    entity_id=str(entity_id),
                )
                return
            # Functional update against the latest list
            changed = False
            patched: list[E] = []
            for entity in state.entities:
                if entity.id == entity_id and entity.rating != aggregate:
                    entity = entity.with_rating(aggregate)
                    changed = True
                patched.append(entity)
            if changed:
                state.entities = patched
                emit()

        def handle_secondary_error(epoch: int, entity_id: str, error: SubscriptionError) -> None:
            # The entity keeps its last-known aggregate
            if epoch == state.epoch and not state.cancelled:
                logfire.warn(
                    "Rating feed lost, keeping last-known aggregate",
                    feed=name,
                    entity_id=str(entity_id),
                    error=str(error),
                )

        def handle_primary_error(error: StoreError) -> None:
            if state.cancelled:
                return
            state.rotate()
            state.entities = list(fallback()) if fallback is not None else []
            logfire.error(
                "Live feed failed",
                feed=name,
                path=query.collection,
                error=str(error),
                fallback=len(state.entities),
            )
            if on_error is not None:
                on_error(SubscriptionError(query.collection, str(error)))
            emit()

        def cancel() -> None:
            state.cancelled = True
            state.rotate()
            if state.primary is not None:
                state.primary()
            logfire.debug("Live feed cancelled", feed=name)

        state.primary = self.store.watch(query, handle_primary, handle_primary_error)
        return Unsubscribe(cancel)
