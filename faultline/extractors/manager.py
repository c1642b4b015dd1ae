"""
Extractor Manager for database-specific diagnostic extractors.

This module manages extractor registration and runs every capable extractor
against one level of an exception chain.
"""

import logging
from typing import Dict, List, Optional

from faultline.extractors.base import DiagnosticExtractor

logger = logging.getLogger(__name__)


class ExtractorManager:
    """Manages diagnostic extractor registration and invocation."""

    def __init__(self):
        """Initialize the extractor manager."""
        self._extractors: Dict[str, DiagnosticExtractor] = {}

    def register_extractor(self, extractor: DiagnosticExtractor) -> None:
        """
        Register a diagnostic extractor.

        Extractors run in registration order; registering a name twice
        replaces the earlier extractor in place.

        Args:
            extractor: DiagnosticExtractor instance to register
        """
        name = extractor.name

        if name in self._extractors:
            logger.warning(f"Extractor '{name}' already registered, overwriting")

        self._extractors[name] = extractor
        logger.debug(f"Registered diagnostic extractor '{name}'")

    def unregister_extractor(self, name: str) -> bool:
        """
        Unregister an extractor.

        Args:
            name: Name of the extractor to unregister

        Returns:
            True if the extractor was unregistered, False if not found
        """
        if name not in self._extractors:
            return False

        del self._extractors[name]
        logger.debug(f"Unregistered diagnostic extractor '{name}'")
        return True

    def get_extractor(self, name: str) -> Optional[DiagnosticExtractor]:
        """Get an extractor by name, or None if not registered."""
        return self._extractors.get(name)

    def list_extractors(self) -> List[str]:
        """List registered extractor names in invocation order."""
        return list(self._extractors.keys())

    def extract(self, exception: BaseException) -> Dict[str, str]:
        """
        Run every extractor that recognizes the exception.

        A failing extractor is logged and skipped; it never prevents the
        error from being captured.

        Args:
            exception: One level of the exception chain

        Returns:
            Merged custom-data fields, later extractors winning on collision
        """
        fields: Dict[str, str] = {}

        for name, extractor in list(self._extractors.items()):
            try:
                if not extractor.can_extract(exception):
                    continue
                fields.update(extractor.extract(exception))
            except Exception as e:
                logger.warning(
                    f"Extractor '{name}' failed on {type(exception).__name__}: {e}",
                    exc_info=True
                )

        return fields

    def get_statistics(self) -> Dict[str, object]:
        """
        Get extractor manager statistics.

        Returns:
            Dictionary with statistics
        """
        return {
            "total_extractors": len(self._extractors),
            "extractors": list(self._extractors.keys())
        }


def default_extractor_manager() -> ExtractorManager:
    """Create a manager with the built-in SQL Server, PostgreSQL and SQLite extractors."""
    from faultline.extractors.postgres import PostgresExtractor
    from faultline.extractors.sqlite import SqliteExtractor
    from faultline.extractors.sqlserver import SqlServerExtractor

    manager = ExtractorManager()
    manager.register_extractor(SqlServerExtractor())
    manager.register_extractor(PostgresExtractor())
    manager.register_extractor(SqliteExtractor())
    return manager
