"""
Base interface for diagnostic extractors.

This module defines the abstract base class that every extractor must
implement to contribute structured fields (server, error number, line,
procedure, ...) from a database-layer exception while the exception chain
is being walked.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class DiagnosticExtractor(ABC):
    """Base interface for database-specific diagnostic extractors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the extractor name (e.g., 'sqlserver', 'postgres')."""
        pass

    @abstractmethod
    def can_extract(self, exception: BaseException) -> bool:
        """
        Check whether this extractor recognizes the exception.

        Args:
            exception: One level of the exception chain

        Returns:
            True if extract() can contribute fields for this exception
        """
        pass

    @abstractmethod
    def extract(self, exception: BaseException) -> Dict[str, str]:
        """
        Extract structured custom-data fields from the exception.

        Only non-empty values should be returned.

        Args:
            exception: Exception accepted by can_extract()

        Returns:
            Mapping of custom-data key to string value
        """
        pass


def non_empty_fields(**fields: Any) -> Dict[str, str]:
    """
    Build a field mapping, dropping None and empty values.

    Args:
        **fields: Candidate fields; values are converted with str()

    Returns:
        Mapping containing only the non-empty values
    """
    result: Dict[str, str] = {}
    for key, value in fields.items():
        if value is None:
            continue
        text = value.decode("utf-8", "replace") if isinstance(value, bytes) else str(value)
        if text:
            result[key] = text
    return result
