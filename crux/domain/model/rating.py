"""Rating entity."""

from datetime import datetime

from crux.domain.model.common import DomainModel
from crux.domain.value import SubjectRef, UserId


class Rating(DomainModel):
    """One rater's value for one subject.

    At most one rating exists per (subject, rater): the rater id is the
    document id, so a new rating replaces the previous one.
    """

    subject: SubjectRef
    rater_id: UserId
    value: int
    created_at: datetime | None = None
