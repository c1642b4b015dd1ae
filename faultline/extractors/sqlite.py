"""SQLite diagnostic extractor for the standard library sqlite3 module."""

import sqlite3
from typing import Dict

from faultline.extractors.base import DiagnosticExtractor, non_empty_fields


class SqliteExtractor(DiagnosticExtractor):
    """Extracts the extended result code of sqlite3 errors."""

    @property
    def name(self) -> str:
        return "sqlite"

    def can_extract(self, exception: BaseException) -> bool:
        return isinstance(exception, sqlite3.Error)

    def extract(self, exception: BaseException) -> Dict[str, str]:
        # sqlite_errorcode/sqlite_errorname are only set on errors raised by the engine
        return non_empty_fields(**{
            "SQL-ErrorNumber": getattr(exception, "sqlite_errorcode", None),
            "SQL-ErrorName": getattr(exception, "sqlite_errorname", None),
        })
