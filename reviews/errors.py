class RelayError(Exception):
    """Base class for errors raised by the review relay."""


class ValidationError(RelayError):
    """A required field is missing or empty."""


class StoreError(RelayError):
    """The database rejected or failed a statement."""


class NotificationError(RelayError):
    """A Telegram Bot API call failed."""

    def __init__(self, message: str, method: str = "", status_code: int | None = None):
        super().__init__(message)
        self.method = method
        self.status_code = status_code


class ActionDecodeError(RelayError):
    """A callback token does not name a known moderation action."""
