"""
SQL Server diagnostic extractor.

Recognizes the exception shape raised by the pymssql driver
(``_mssql.MSSQLDatabaseException``), which carries the server name, error
number, line number and stored procedure of the failing statement. The
driver's DB-API exceptions chain to this one, so it is found while walking
the exception chain.
"""

from typing import Dict

from faultline.extractors.base import DiagnosticExtractor, non_empty_fields


class SqlServerExtractor(DiagnosticExtractor):
    """Extracts SQL Server error details."""

    @property
    def name(self) -> str:
        return "sqlserver"

    def can_extract(self, exception: BaseException) -> bool:
        return hasattr(exception, "number") and hasattr(exception, "srvname")

    def extract(self, exception: BaseException) -> Dict[str, str]:
        return non_empty_fields(**{
            "SQL-Server": getattr(exception, "srvname", None),
            "SQL-ErrorNumber": getattr(exception, "number", None),
            "SQL-LineNumber": getattr(exception, "line", None),
            "SQL-Procedure": getattr(exception, "procname", None),
        })
