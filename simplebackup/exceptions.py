"""Error types raised by simple-backup."""

from __future__ import annotations


class SimpleBackupError(Exception):
    """Base class for all simple-backup errors."""

    exit_code = 1


class ConfigurationError(SimpleBackupError):
    """Invalid or missing settings. Raised before any rotation work starts."""


class CollaboratorFailure(SimpleBackupError):
    """
    An external operation (dump, copy, delete, listing) failed.

    Attributes:
        operation: Short name of the failed operation
        status: Exit status reported by the operation
        detail: Optional extra context (command line, stderr, path)
    """

    def __init__(self, operation: str, status: int = 1, detail: str | None = None):
        self.operation = operation
        self.status = status
        self.detail = detail
        message = f"{operation} failed with status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def exit_code(self) -> int:
        # A zero or negative status (signal) still has to fail the process
        return self.status if self.status > 0 else 1
