"""Draft reconciliation.

Drafts live in two places: the local store (always, keyed by identity or
guest) and the remote store (signed-in identities only). The reconciler
keeps the merged view for the active identity, binds one draft at a time to
the compose form, and keeps both stores converging.

Merge rule: remote entries win for any id present in both; local entries
unknown to the remote are kept; the result is ordered by ``updated_at``,
newest first.

A deletion the remote store has not confirmed yet is remembered per identity
in local storage. It hides the remote copy, is retried on the next sign-in
and is forgotten once a remote snapshot no longer carries the draft.
"""

import asyncio
from typing import Callable
from uuid import uuid4

import logfire

from crux.config import DraftSettings
from crux.domain.error import NotFoundError
from crux.domain.model import ComposeForm, Draft
from crux.domain.model.common import DomainModel
from crux.domain.repository import (
    DocumentStore,
    LocalStorage,
    LocalStorageError,
    Query,
    QuerySnapshot,
    StoreError,
    Unsubscribe,
    paths,
)
from crux.domain.repository.mappers import (
    doc_to_draft,
    draft_ids_from_json,
    draft_ids_to_json,
    draft_to_doc,
    drafts_from_json,
    drafts_to_json,
)
from crux.domain.value import DraftId, DraftStatus, UserId
from crux.util.time import Clock


NOTHING_TO_SAVE = "Nothing to save"
SAVED = "Draft saved"
SAVED_LOCALLY = "Draft saved locally, sync pending"
DELETED = "Draft deleted"
DELETED_LOCALLY = "Draft deleted locally, sync pending"


class DraftOutcome(DomainModel):
    """Result of a draft save or delete."""

    draft_id: DraftId | None = None
    status: DraftStatus | None = None
    message: str

    @property
    def degraded(self) -> bool:
        """True when the change only reached the local store."""
        return self.status == DraftStatus.SYNC_FAILED


class DraftReconciler:
    """Domain service keeping local and remote drafts reconciled."""

    def __init__(
        self,
        store: DocumentStore,
        local_storage: LocalStorage,
        draft_settings: DraftSettings,
        clock: Clock,
    ) -> None:
        """Initialize draft reconciler.

        Starts in guest mode; call ``switch_identity`` on every identity change.

        Args:
            store: Remote document store
            local_storage: Local persistent storage
            draft_settings: Storage keys and auto-save timeout
            clock: Current time source
        """
        self.store = store
        self.local_storage = local_storage
        self.draft_settings = draft_settings
        self.clock = clock

        self._identity_id: UserId | None = None
        self._epoch = 0
        self._local: dict[DraftId, Draft] = {}
        self._remote: dict[DraftId, Draft] = {}
        self._status: dict[DraftId, DraftStatus] = {}
        self._tombstones: set[DraftId] = set()
        self._deleted: set[DraftId] = set()
        self._retries: set[asyncio.Task] = set()
        self._remote_watch: Unsubscribe | None = None
        self._compose = ComposeForm()
        self._in_flight: asyncio.Task | None = None
        self._listeners: list[Callable[[], None]] = []
        self._load_local()

    # State

    @property
    def identity_id(self) -> UserId | None:
        return self._identity_id

    @property
    def local_key(self) -> str:
        owner = self._identity_id or self.draft_settings.guest_key
        return f"{self.draft_settings.key_prefix}{owner}"

    @property
    def pending_deletions_key(self) -> str:
        return f"{self.local_key}{self.draft_settings.pending_deletions_suffix}"

    @property
    def compose(self) -> ComposeForm:
        return self._compose

    @property
    def drafts(self) -> list[Draft]:
        """Merged drafts of the active identity, most recently updated first."""
        hidden = self._tombstones | self._deleted
        merged = {
            draft_id: draft
            for draft_id, draft in self._local.items()
            if draft_id not in hidden
        }
        for draft_id, draft in self._remote.items():
            if draft_id not in hidden:
                merged[draft_id] = draft
        return sorted(merged.values(), key=lambda d: d.updated_at, reverse=True)

    def status_of(self, draft_id: DraftId) -> DraftStatus | None:
        return self._status.get(draft_id)

    def on_change(self, listener: Callable[[], None]) -> Unsubscribe:
        """Be notified whenever drafts, statuses or the compose form change."""
        self._listeners.append(listener)

        def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Unsubscribe(release)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # Identity

    def switch_identity(self, identity_id: UserId | None) -> None:
        """Rebind to another identity (None for guest mode).

        Loads that identity's local drafts and, when signed in, starts the
        remote drafts subscription. Compose text is kept but is no longer
        bound to a draft of the previous identity.
        """
        with logfire.span("draft_reconciler.switch_identity", identity_id=str(identity_id)):
            self._stop_remote()
            self._epoch += 1
            self._identity_id = identity_id
            self._remote = {}
            self._load_local()
            self._compose = self._compose.model_copy(update={"current_draft_id": None})

            if identity_id is not None:
                self._start_remote(identity_id)

            logfire.info(
                "Drafts bound to identity",
                identity_id=str(identity_id),
                local_drafts=len(self._local),
            )
            self._notify()

    def _load_local(self) -> None:
        self._local = {
            draft.id: draft
            for draft in drafts_from_json(self.local_storage.get(self.local_key), self.clock())
        }
        self._status = {draft_id: DraftStatus.LOCAL_ONLY for draft_id in self._local}
        self._tombstones = draft_ids_from_json(
            self.local_storage.get(self.pending_deletions_key)
        )

    def _start_remote(self, identity_id: UserId) -> None:
        epoch = self._epoch
        query = Query(paths.drafts(identity_id)).order("updatedAt", descending=True)

        def handle_snapshot(snapshot: QuerySnapshot) -> None:
            if epoch != self._epoch:
                return
            self._apply_remote(snapshot)

        def handle_error(error: StoreError) -> None:
            if epoch != self._epoch:
                return
            # Local drafts remain usable
            logfire.warn(
                "Remote drafts feed failed",
                identity_id=str(identity_id),
                error=str(error),
            )

        self._remote_watch = self.store.watch(query, handle_snapshot, handle_error)
        for draft_id in sorted(self._tombstones):
            self._retry_delete(identity_id, draft_id)

    def _retry_delete(self, identity_id: UserId, draft_id: DraftId) -> None:
        try:
            task = asyncio.get_running_loop().create_task(
                self._delete_remote(identity_id, draft_id)
            )
        except RuntimeError:
            # No loop yet; the pending deletion is retried on the next sign-in
            return
        self._retries.add(task)
        task.add_done_callback(self._retries.discard)

    async def _delete_remote(self, identity_id: UserId, draft_id: DraftId) -> bool:
        path = paths.draft(identity_id, draft_id)
        try:
            await self.store.delete(path)
        except StoreError as e:
            logfire.warn("Remote draft delete failed", path=path, error=str(e))
            return False
        return True

    def _stop_remote(self) -> None:
        if self._remote_watch is not None:
            self._remote_watch()
            self._remote_watch = None

    def _apply_remote(self, snapshot: QuerySnapshot) -> None:
        now = self.clock()
        remote: dict[DraftId, Draft] = {}
        for doc in snapshot:
            draft = doc_to_draft(doc, now)
            if draft is not None:
                remote[draft.id] = draft

        # A pending deletion is forgotten once the remote copy is really gone
        confirmed = self._tombstones - set(remote)
        if confirmed:
            self._tombstones -= confirmed
            self._write_pending_deletions()
        self._remote = remote
        for draft_id in remote:
            if draft_id in self._tombstones or draft_id in self._deleted:
                continue
            if self._status.get(draft_id) != DraftStatus.SYNCING:
                self._status[draft_id] = DraftStatus.SYNCED

        self._local = {draft.id: draft for draft in self.drafts}
        self._write_local(self.local_key, list(self._local.values()))
        logfire.debug("Remote drafts merged", remote=len(remote), merged=len(self._local))
        self._notify()

    def _write_local(self, key: str, drafts: list[Draft]) -> bool:
        try:
            self.local_storage.set(key, drafts_to_json(drafts))
        except LocalStorageError as e:
            logfire.error("Local drafts write failed", key=key, error=str(e))
            return False
        return True

    def _write_pending_deletions(self) -> None:
        key = self.pending_deletions_key
        try:
            if self._tombstones:
                self.local_storage.set(key, draft_ids_to_json(self._tombstones))
            else:
                self.local_storage.remove(key)
        except LocalStorageError as e:
            logfire.error("Pending draft deletions write failed", key=key, error=str(e))

    # Compose form

    def edit(
        self,
        title: str | None = None,
        content: str | None = None,
        tags_text: str | None = None,
    ) -> ComposeForm:
        """Change compose fields; any edit marks the form dirty."""
        update: dict[str, object] = {"dirty": True}
        if title is not None:
            update["title"] = title
        if content is not None:
            update["content"] = content
        if tags_text is not None:
            update["tags_text"] = tags_text
        self._compose = self._compose.model_copy(update=update)
        self._notify()
        return self._compose

    def clear_compose(self) -> None:
        self._compose = ComposeForm()
        self._notify()

    def load_draft(self, draft_id: DraftId) -> ComposeForm:
        """Bind the compose form to a draft.

        Raises:
            NotFoundError: If the draft is not in the merged set
        """
        draft = next((d for d in self.drafts if d.id == draft_id), None)
        if draft is None:
            raise NotFoundError("Draft", draft_id)
        self._compose = ComposeForm(
            title=draft.title,
            content=draft.content,
            tags_text=", ".join(draft.tags),
            dirty=False,
            current_draft_id=draft.id,
        )
        logfire.info("Draft loaded", draft_id=str(draft_id))
        self._notify()
        return self._compose

    # Save

    async def save_draft(self) -> DraftOutcome:
        """Save the compose form as a draft.

        Single-flight: while a save is running, further calls wait for it and
        return its outcome (and draft id) instead of starting another save.

        Returns:
            Outcome; ``degraded`` when only the local store was updated
        """
        if self._in_flight is not None and not self._in_flight.done():
            logfire.debug("Save already in flight, joining it")
            return await asyncio.shield(self._in_flight)

        form = self._compose
        if form.is_empty:
            return DraftOutcome(message=NOTHING_TO_SAVE)

        task = asyncio.get_running_loop().create_task(self._save(form))
        self._in_flight = task

        def release(done: asyncio.Task) -> None:
            if self._in_flight is done:
                self._in_flight = None

        task.add_done_callback(release)
        # Shielded so a caller timing out does not abort the save itself
        return await asyncio.shield(task)

    async def _save(self, form: ComposeForm) -> DraftOutcome:
        with logfire.span(
            "draft_reconciler.save_draft",
            identity_id=str(self._identity_id),
            draft_id=str(form.current_draft_id),
        ):
            epoch = self._epoch
            identity_id = self._identity_id
            local_key = self.local_key
            now = self.clock()

            existing = next(
                (d for d in self.drafts if d.id == form.current_draft_id), None
            )
            if form.current_draft_id is not None:
                draft_id = form.current_draft_id
            elif identity_id is not None:
                draft_id = DraftId(self.store.allocate_id())
            else:
                draft_id = DraftId(uuid4().hex)

            if draft_id in self._deleted:
                return self._deleted_during_save(draft_id)

            draft = Draft(
                id=draft_id,
                title=form.title.strip(),
                content=form.content.strip(),
                tags=form.tags,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )

            # Bind the form right away so edits during the save keep the id
            if self._compose.current_draft_id is None:
                self._compose = self._compose.model_copy(update={"current_draft_id": draft_id})

            status = DraftStatus.LOCAL_ONLY
            if identity_id is not None:
                self._status[draft_id] = DraftStatus.SYNCING
                self._notify()
                path = paths.draft(identity_id, draft_id)
                try:
                    await self.store.set(path, draft_to_doc(draft))
                    status = DraftStatus.SYNCED
                except StoreError as e:
                    status = DraftStatus.SYNC_FAILED
                    logfire.warn("Remote draft save failed", path=path, error=str(e))

            if draft_id in self._deleted:
                # Deleted while the remote write was in flight: the deletion wins
                deleted = status != DraftStatus.SYNCED or await self._delete_remote(
                    identity_id, draft_id
                )
                if not deleted and epoch == self._epoch:
                    self._tombstones.add(draft_id)
                    self._write_pending_deletions()
                return self._deleted_during_save(draft_id)

            if epoch == self._epoch:
                self._local[draft_id] = draft
                self._status[draft_id] = status
                self._write_local(local_key, list(self._local.values()))
                if self._compose_matches(form):
                    self._compose = self._compose.model_copy(update={"dirty": False})
                self._notify()
            else:
                # Identity changed mid-save: still write through for the old identity
                stored = {
                    d.id: d
                    for d in drafts_from_json(self.local_storage.get(local_key), now)
                }
                stored[draft_id] = draft
                self._write_local(local_key, list(stored.values()))

            logfire.info("Draft saved", draft_id=str(draft_id), status=status.value)
            return DraftOutcome(
                draft_id=draft_id,
                status=status,
                message=SAVED_LOCALLY if status == DraftStatus.SYNC_FAILED else SAVED,
            )

    def _deleted_during_save(self, draft_id: DraftId) -> DraftOutcome:
        self._status.pop(draft_id, None)
        self._notify()
        logfire.info("Save dropped, draft was deleted", draft_id=str(draft_id))
        return DraftOutcome(draft_id=draft_id, message=DELETED)

    def _compose_matches(self, form: ComposeForm) -> bool:
        current = self._compose
        return (
            current.title == form.title
            and current.content == form.content
            and current.tags_text == form.tags_text
        )

    async def auto_save(self) -> DraftOutcome | None:
        """Save unsaved edits before navigating away or signing out.

        Waits for the save, bounded by the auto-save timeout. Never raises:
        a failed or slow save must not block the navigation.

        Returns:
            Outcome, or None when nothing was saved
        """
        form = self._compose
        if not form.dirty or form.is_empty:
            return None
        with logfire.span("draft_reconciler.auto_save"):
            try:
                return await asyncio.wait_for(
                    self.save_draft(), timeout=self.draft_settings.autosave_timeout_seconds
                )
            except asyncio.TimeoutError:
                logfire.warn(
                    "Auto-save timed out, continuing",
                    timeout=self.draft_settings.autosave_timeout_seconds,
                )
            except Exception as e:
                logfire.error("Auto-save failed, continuing", error=str(e))
            return None

    # Delete

    async def delete_draft(self, draft_id: DraftId) -> DraftOutcome:
        """Delete a draft.

        The local deletion takes effect immediately and is kept even if the
        remote deletion fails.

        Returns:
            Outcome; ``degraded`` when the remote copy could not be deleted
        """
        with logfire.span(
            "draft_reconciler.delete_draft",
            identity_id=str(self._identity_id),
            draft_id=str(draft_id),
        ):
            identity_id = self._identity_id
            self._deleted.add(draft_id)
            self._local.pop(draft_id, None)
            self._status.pop(draft_id, None)
            self._write_local(self.local_key, list(self._local.values()))
            if self._compose.current_draft_id == draft_id:
                self._compose = self._compose.model_copy(update={"current_draft_id": None})

            if identity_id is None:
                self._notify()
                logfire.info("Draft deleted locally", draft_id=str(draft_id))
                return DraftOutcome(draft_id=draft_id, status=DraftStatus.LOCAL_ONLY, message=DELETED)

            self._tombstones.add(draft_id)
            self._write_pending_deletions()
            self._notify()
            if not await self._delete_remote(identity_id, draft_id):
                return DraftOutcome(
                    draft_id=draft_id, status=DraftStatus.SYNC_FAILED, message=DELETED_LOCALLY
                )

            logfire.info("Draft deleted", draft_id=str(draft_id))
            return DraftOutcome(draft_id=draft_id, status=DraftStatus.SYNCED, message=DELETED)

    def close(self) -> None:
        self._stop_remote()
        self._epoch += 1
        for task in list(self._retries):
            task.cancel()
