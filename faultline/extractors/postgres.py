"""
PostgreSQL diagnostic extractor.

Recognizes psycopg (2 and 3) errors, which expose the SQLSTATE code and a
``diag`` object with server-side diagnostics.
"""

from typing import Dict

from faultline.extractors.base import DiagnosticExtractor, non_empty_fields


class PostgresExtractor(DiagnosticExtractor):
    """Extracts PostgreSQL error details."""

    @property
    def name(self) -> str:
        return "postgres"

    def can_extract(self, exception: BaseException) -> bool:
        return hasattr(exception, "diag") and (
            hasattr(exception, "pgcode") or hasattr(exception, "sqlstate")
        )

    def extract(self, exception: BaseException) -> Dict[str, str]:
        # psycopg2 uses pgcode, psycopg 3 uses sqlstate
        code = getattr(exception, "sqlstate", None) or getattr(exception, "pgcode", None)
        diag = getattr(exception, "diag", None)

        return non_empty_fields(**{
            "SQL-ErrorNumber": code,
            "SQL-Procedure": getattr(diag, "context", None),
            "SQL-Schema": getattr(diag, "schema_name", None),
            "SQL-Table": getattr(diag, "table_name", None),
            "SQL-Constraint": getattr(diag, "constraint_name", None),
        })
