"""Posting gate.

Enforces the one-post-per-cooldown cadence (24 hours by default) per
identity: Open -> Cooldown -> Open.

The durable record is ``users/{id}.lastPostAt``, stamped by the store in the
same batch as the post itself. Submitting also sets a provisional lock
locally before the write is confirmed, so a slow round-trip cannot let a
second post through. The provisional lock is replaced by the durable value
whenever the gate is (re)loaded for an identity.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Sequence

import logfire

from crux.config import PostingSettings
from crux.domain.error import CooldownActiveError, NotAuthorizedError, SyncError
from crux.domain.model import PostingCooldown
from crux.domain.repository import (
    SERVER_TIMESTAMP,
    DocumentStore,
    StoreError,
    Unsubscribe,
    WriteOp,
    paths,
)
from crux.domain.value import GateState, UserId
from crux.util.time import Clock, format_duration, to_datetime


CooldownListener = Callable[[PostingCooldown], None]


class PostingGate:
    """Domain service gating post creation on the posting cooldown."""

    def __init__(
        self, store: DocumentStore, posting_settings: PostingSettings, clock: Clock
    ) -> None:
        """Initialize posting gate.

        Args:
            store: Document store
            posting_settings: Cooldown length and countdown interval
            clock: Current time source
        """
        self.store = store
        self.posting_settings = posting_settings
        self.clock = clock
        self._identity_id: UserId | None = None
        self._last_post_at: datetime | None = None
        self._next_allowed_at: datetime | None = None
        self._provisional = False
        self._listeners: list[CooldownListener] = []
        self._countdown: asyncio.Task | None = None
        self._pending_loads = 0
        self._loaded = asyncio.Event()
        self._loaded.set()

    @property
    def cooldown(self) -> timedelta:
        return timedelta(hours=self.posting_settings.cooldown_hours)

    @property
    def next_allowed_at(self) -> datetime | None:
        return self._next_allowed_at

    def remaining(self) -> timedelta:
        """Time left before the next post is allowed (zero when open)."""
        if self._next_allowed_at is None:
            return timedelta(0)
        return max(timedelta(0), self._next_allowed_at - self.clock())

    @property
    def loading(self) -> bool:
        """True while the durable record of the identity is being read."""
        return not self._loaded.is_set()

    @property
    def state(self) -> GateState:
        return GateState.COOLDOWN if self.remaining() > timedelta(0) else GateState.OPEN

    def format_remaining(self) -> str:
        """Remaining wait for display, e.g. ``"23h 59m 59s"``."""
        return format_duration(self.remaining())

    def status(self) -> PostingCooldown:
        remaining = self.remaining()
        return PostingCooldown(
            identity_id=self._identity_id,
            state=GateState.COOLDOWN if remaining > timedelta(0) else GateState.OPEN,
            last_post_at=self._last_post_at,
            next_allowed_at=self._next_allowed_at,
            remaining_seconds=int(remaining.total_seconds()),
            provisional=self._provisional,
            loading=self.loading,
        )

    def on_change(self, listener: CooldownListener) -> Unsubscribe:
        """Receive the gate status on every transition and countdown tick."""
        self._listeners.append(listener)

        def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Unsubscribe(release)

    def _notify(self) -> None:
        status = self.status()
        for listener in list(self._listeners):
            listener(status)

    async def load(self, identity_id: UserId | None) -> PostingCooldown:
        """Read the durable last-post time for an identity.

        Replaces any provisional lock. A stale record (cooldown elapsed)
        simply leaves the gate open; it is not cleared. Submissions made
        while the record is being read wait for it.

        Args:
            identity_id: Signed-in identity, or None when signed out

        Returns:
            Gate status after loading
        """
        with logfire.span("posting_gate.load", identity_id=str(identity_id)):
            self._identity_id = identity_id
            self._set_last_post(None, provisional=False)
            if identity_id is None:
                self._notify()
                return self.status()

            self.hold()
            try:
                return await self._read_last_post(identity_id)
            finally:
                self.unhold()

    def hold(self) -> None:
        """Treat the gate as loading until the matching ``unhold``.

        Lets a caller that schedules a load in the background make
        submissions wait from the moment the identity changes.
        """
        self._pending_loads += 1
        self._loaded.clear()

    def unhold(self) -> None:
        self._pending_loads = max(0, self._pending_loads - 1)
        if self._pending_loads == 0:
            self._loaded.set()

    async def _read_last_post(self, identity_id: UserId) -> PostingCooldown:
        path = paths.user(identity_id)
        try:
            doc = await self.store.get(path)
        except StoreError as e:
            # Without the record the gate stays open; the server still stamps posts
            logfire.warn("Could not read last post time", path=path, error=str(e))
            self._notify()
            return self.status()

        if self._identity_id != identity_id:
            # Identity changed while reading
            return self.status()

        self._set_last_post(to_datetime(doc.get("lastPostAt")), provisional=False)
        logfire.info(
            "Posting gate loaded",
            identity_id=str(identity_id),
            state=self.state.value,
            remaining=self.format_remaining(),
        )
        self._start_countdown()
        self._notify()
        return self.status()

    def check(self) -> None:
        """Reject a submission while the cooldown is active.

        Raises:
            CooldownActiveError: Carrying the remaining wait
        """
        remaining = self.remaining()
        if remaining > timedelta(0):
            raise CooldownActiveError(remaining)

    async def submit(self, identity_id: UserId, ops: Sequence[WriteOp]) -> None:
        """Write a post under the gate.

        The post writes and ``users/{id}.lastPostAt`` go out as one batch.
        The provisional cooldown is set before the batch is sent and reverted
        if the batch fails.

        Args:
            identity_id: Posting identity
            ops: Writes creating the post

        Raises:
            NotAuthorizedError: If identity_id is not the loaded identity
            CooldownActiveError: If the cooldown is active
            SyncError: If the batch fails (the gate is open again)
        """
        with logfire.span("posting_gate.submit", identity_id=str(identity_id)):
            if self.loading:
                logfire.debug("Waiting for the posting gate to load")
                await self._loaded.wait()
            if identity_id != self._identity_id:
                raise NotAuthorizedError("create", "post")
            self.check()

            previous = (self._last_post_at, self._provisional)
            self._set_last_post(self.clock(), provisional=True)
            self._start_countdown()
            self._notify()

            user_path = paths.user(identity_id)
            batch = [
                *ops,
                WriteOp.set(user_path, {"lastPostAt": SERVER_TIMESTAMP}, merge=True),
            ]
            try:
                await self.store.write_batch(batch)
            except StoreError as e:
                if self._identity_id == identity_id:
                    self._set_last_post(*previous)
                    self._notify()
                logfire.error(
                    "Post write failed, cooldown reverted",
                    identity_id=str(identity_id),
                    error=str(e),
                )
                raise SyncError("create", "post", str(e)) from e

            logfire.info(
                "Post submitted, cooldown started",
                identity_id=str(identity_id),
                next_allowed_at=str(self._next_allowed_at),
            )

    def _set_last_post(self, last_post_at: datetime | None, provisional: bool) -> None:
        self._last_post_at = last_post_at
        self._next_allowed_at = last_post_at + self.cooldown if last_post_at else None
        self._provisional = provisional and last_post_at is not None

    def _start_countdown(self) -> None:
        if self.state != GateState.COOLDOWN:
            return
        if self._countdown is not None and not self._countdown.done():
            return
        try:
            self._countdown = asyncio.get_running_loop().create_task(self._run_countdown())
        except RuntimeError:
            self._countdown = None

    async def _run_countdown(self) -> None:
        """Emit the remaining wait every interval until the gate opens."""
        interval = self.posting_settings.countdown_interval_seconds
        while self.state == GateState.COOLDOWN:
            await asyncio.sleep(interval)
            self._notify()
        logfire.info("Posting cooldown elapsed", identity_id=str(self._identity_id))

    def close(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        self._loaded.set()
