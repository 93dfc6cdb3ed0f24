"""Draft entity and compose form state."""

from datetime import datetime

from pydantic import Field

from crux.domain.model.common import DomainModel
from crux.domain.value import DraftId, parse_tags


class Draft(DomainModel):
    """Unpublished snapshot of the compose form.

    Lives in local storage (``drafts-<identity-or-guest>``) and, for signed-in
    users, in ``users/{id}/drafts/{id}``. The id is the same in both places
    once synced.
    """

    id: DraftId
    title: str = ""
    content: str = ""
    tags: tuple[str, ...] = Field(default_factory=tuple)
    created_at: datetime
    updated_at: datetime


class ComposeForm(DomainModel):
    """Fields of the post compose form.

    ``dirty`` is set by any edit and cleared when the form is loaded from or
    saved to a draft. ``current_draft_id`` binds the form to one draft.
    """

    title: str = ""
    content: str = ""
    tags_text: str = ""
    dirty: bool = False
    current_draft_id: DraftId | None = None

    @property
    def tags(self) -> tuple[str, ...]:
        return parse_tags(self.tags_text)

    @property
    def is_empty(self) -> bool:
        """True when title, content and tags are all blank."""
        return not (self.title.strip() or self.content.strip() or self.tags)
