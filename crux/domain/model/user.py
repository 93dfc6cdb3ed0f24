"""User identity and profile entities."""

from datetime import datetime

from crux.domain.model.common import DomainModel
from crux.domain.value import UserId


class Identity(DomainModel):
    """Signed-in identity as reported by the identity provider.

    Owned by the provider; read-only here apart from profile mirroring.
    """

    id: UserId
    display_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None

    @property
    def author_name(self) -> str:
        """Name snapshot stored on posts and comments.

        Display name, else the local part of the email, else "Anonymous".
        """
        if self.display_name and self.display_name.strip():
            return self.display_name.strip()
        if self.email and "@" in self.email:
            local_part = self.email.split("@", 1)[0]
            if local_part:
                return local_part
        return "Anonymous"


class UserProfile(DomainModel):
    """Profile mirrored to ``users/{id}``."""

    id: UserId
    display_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    created_at: datetime | None = None
    last_login_at: datetime | None = None
    last_post_at: datetime | None = None
