from typing import Optional


class ValidationError(ValueError):
    """A user-correctable problem with submitted fields.

    ``errors`` maps each offending field to a human readable message.
    """

    def __init__(self, message: str, errors: Optional[dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = dict(errors or {})


class NotFoundError(ValueError):
    """Unknown id, or an id owned by someone else. The two are never told apart."""


class Unauthenticated(ValueError):
    pass


class StoreError(RuntimeError):
    """The relational store failed. The original exception is chained."""


class IntegrityConflict(StoreError):
    """A write violated a uniqueness or check constraint."""
