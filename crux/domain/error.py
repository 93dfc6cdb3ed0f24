"""Domain layer errors."""

from datetime import timedelta

from crux.util.time import format_duration


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Input rejected before any write is attempted."""

    pass


class CooldownActiveError(ValidationError):
    """Raised when posting while the posting cooldown is still running."""

    def __init__(self, remaining: timedelta):
        self.remaining = remaining
        super().__init__(f"You can post again in {format_duration(remaining)}")


class NotAuthorizedError(DomainError):
    """Raised when a user acts on content they don't own, or is signed out."""

    def __init__(self, action: str, resource: str, resource_id: str | None = None):
        self.action = action
        self.resource = resource
        self.resource_id = resource_id
        if resource_id:
            super().__init__(f"Not authorized to {action} {resource} {resource_id}")
        else:
            super().__init__(f"Sign in to {action} {resource}")


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class SyncError(DomainError):
    """Remote read or write against the document store failed."""

    def __init__(self, operation: str, path: str, reason: str):
        self.operation = operation
        self.path = path
        self.reason = reason
        super().__init__(f"Could not {operation} {path}: {reason}")


class SubscriptionError(DomainError):
    """A live feed failed and was closed by the store."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Live feed {path} failed: {reason}")
