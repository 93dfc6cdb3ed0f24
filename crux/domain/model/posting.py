"""Posting cooldown entity."""

from datetime import datetime

from crux.domain.model.common import DomainModel
from crux.domain.value import GateState, UserId


class PostingCooldown(DomainModel):
    """Posting gate status for one identity at one instant."""

    identity_id: UserId | None = None
    state: GateState = GateState.OPEN
    last_post_at: datetime | None = None
    next_allowed_at: datetime | None = None
    remaining_seconds: int = 0
    provisional: bool = False  # Set optimistically, not yet read back from the store
    loading: bool = False  # Durable record not read yet
