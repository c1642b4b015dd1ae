"""
Base interface for error stores.

A store commits error records and is responsible for rollup: matching a new
error to a recent one with the same fingerprint and counting it as a
duplicate instead of keeping a second copy. Any locking needed to make that
match-and-increment atomic belongs to the store.
"""

from abc import ABC, abstractmethod

from faultline.models.error import ErrorRecord


class ErrorStoreError(Exception):
    """Raised when a store fails to commit an error."""
    pass


class ErrorStore(ABC):
    """Base interface for error persistence backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the store name (e.g., 'memory', 'sql')."""
        pass

    @abstractmethod
    def log(self, error: ErrorRecord) -> None:
        """
        Commit an error to the store.

        Implementations assign error.id and perform rollup.

        Args:
            error: Error to commit

        Raises:
            ErrorStoreError: If the error could not be committed
        """
        pass
