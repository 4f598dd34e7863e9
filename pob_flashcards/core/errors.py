# core/errors.py
"""
Error taxonomy shared by the services.

Every failure the core can produce is one of these kinds. Provider specific
errors (SQLAlchemy, JSON, base64) are translated at the boundary where they
occur and never leak into pages.
"""


class FlashcardsError(Exception):
    """Base class for all recoverable application errors."""
    pass


class ValidationError(FlashcardsError, ValueError):
    """A deck or card failed validation. Nothing was stored."""
    pass


class InvalidFormat(ValidationError):
    """Payload shape is wrong: missing title, cards not a list, no usable cards."""
    pass


class TooManyCards(ValidationError):
    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"This set has too many cards ({count}). Maximum allowed is {limit} cards."
        )


class PayloadTooLarge(ValidationError):
    def __init__(self, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"This set is too large ({round(size_bytes / 1024)}KB). "
            f"Maximum allowed is {round(limit_bytes / 1024)}KB."
        )


class StorageError(FlashcardsError):
    """Local deck storage is unavailable or full. In-memory state is kept."""
    pass


class GatewayError(FlashcardsError):
    """The content/score/sharing backend failed. Retry is up to the user."""
    pass


class NotFound(FlashcardsError):
    """A shared deck key does not exist."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No shared set was found for code '{key}'.")


class SessionStateError(FlashcardsError, RuntimeError):
    """An operation was invoked in a state that does not allow it."""
    pass
