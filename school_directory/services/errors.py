"""
Domain errors raised by the service layer.
Routes let these propagate; the handlers in main.py turn them into JSON responses.
"""
from typing import Optional


class SchoolDirectoryError(Exception):
    """Base class for all service-layer errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchoolDirectoryError):
    """Caller-supplied data violates a precondition. Never retried automatically."""


class NotFoundError(SchoolDirectoryError):
    """A referenced school, user or image does not exist."""


class StorageError(SchoolDirectoryError):
    """
    An object storage upload failed or timed out.

    Raised before any row is touched, so retrying the whole synchronization is safe.
    position is the index of the failing draft in the submitted list, if known.
    """

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class PersistenceError(SchoolDirectoryError):
    """
    A row store operation failed.

    stage names the step that failed (select, insert, delete, update, commit).
    reconciliation_required is True when rows may have been partially
    mutated and a blind retry could duplicate or lose rows.
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        reconciliation_required: bool = False,
    ):
        super().__init__(message)
        self.stage = stage
        self.reconciliation_required = reconciliation_required
