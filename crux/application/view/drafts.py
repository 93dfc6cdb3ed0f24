"""Drafts view."""

from crux.application.view.base import View, ViewState
from crux.domain.model import ComposeForm, Draft
from crux.domain.service import DraftReconciler
from crux.domain.value import DraftId, DraftStatus, UserId


class DraftsState(ViewState):
    identity_id: UserId | None = None
    drafts: list[Draft] = []
    statuses: dict[DraftId, DraftStatus] = {}
    compose: ComposeForm = ComposeForm()


class DraftsView(View[DraftsState]):
    """Merged drafts of the active identity and the compose form."""

    def __init__(self, draft_reconciler: DraftReconciler) -> None:
        super().__init__(DraftsState())
        self.draft_reconciler = draft_reconciler

    def _open(self) -> None:
        self._track(self.draft_reconciler.on_change(self._refresh))
        self._refresh()

    def _refresh(self) -> None:
        reconciler = self.draft_reconciler
        drafts = reconciler.drafts
        statuses = {}
        for draft in drafts:
            status = reconciler.status_of(draft.id)
            if status is not None:
                statuses[draft.id] = status
        self.state.set(
            DraftsState(
                identity_id=reconciler.identity_id,
                drafts=drafts,
                statuses=statuses,
                compose=reconciler.compose,
            )
        )
