"""
Diagnostic extractor architecture for database-layer exceptions.

This package provides the extractor interface, the extractor manager and
the built-in SQL Server, PostgreSQL and SQLite extractors.
"""

from faultline.extractors.base import DiagnosticExtractor
from faultline.extractors.manager import ExtractorManager, default_extractor_manager
from faultline.extractors.postgres import PostgresExtractor
from faultline.extractors.sqlite import SqliteExtractor
from faultline.extractors.sqlserver import SqlServerExtractor

__all__ = [
    'DiagnosticExtractor',
    'ExtractorManager',
    'default_extractor_manager',
    'PostgresExtractor',
    'SqliteExtractor',
    'SqlServerExtractor',
]
