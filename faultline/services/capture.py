"""
Error capture service.

Builds ErrorRecord instances from exceptions: walks the exception chain,
copies the request context and computes the rollup fingerprint.
"""

from datetime import datetime, timezone
from typing import Optional

from faultline.config import Settings
from faultline.models.context import RequestContext
from faultline.models.error import ErrorRecord
from faultline.services.chain_walker import ChainWalker
from faultline.services.hashing import compute_error_hash
from faultline.services.pipeline import get_pipeline
from faultline.stores.base import ErrorStore
from faultline.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCapture:
    """Creates error records for one application."""

    def __init__(self, settings: Optional[Settings] = None, walker: Optional[ChainWalker] = None):
        """
        Initialize the capture service.

        Args:
            settings: Capture settings. If None, will load from global settings.
            walker: Chain walker to use. If None, one is built from settings.
        """
        if settings is None:
            from faultline.config import settings as global_settings
            settings = global_settings

        self.settings = settings
        self.walker = walker or ChainWalker(data_include_pattern=settings.data_include_pattern)

    def capture(
        self,
        exception: BaseException,
        context: Optional[RequestContext] = None,
        application_name: Optional[str] = None
    ) -> ErrorRecord:
        """
        Create an error record from an exception.

        Args:
            exception: Exception to capture
            context: Request context supplied by the host environment
            application_name: Application name overriding the configured one

        Returns:
            New ErrorRecord with duplicate_count 1

        Raises:
            ValueError: If exception is None
        """
        if exception is None:
            raise ValueError("exception must not be None")

        summary = self.walker.walk(exception)

        error = ErrorRecord(
            application_name=application_name or self.settings.application_name,
            machine_name=self.settings.machine_name,
            type=summary.type,
            message=summary.message,
            source=summary.source,
            detail=summary.detail,
            creation_date=datetime.now(timezone.utc),
            duplicate_count=1,
            custom_data=summary.custom_data or None,
            sql=summary.sql,
            rollup_per_server=self.settings.rollup_per_server,
            exception=exception,
        )

        if context is not None:
            self._apply_context(error, context)

        error.error_hash = compute_error_hash(error.detail, error.rollup_per_server, error.machine_name)
        return error

    @staticmethod
    def _apply_context(error: ErrorRecord, context: RequestContext) -> None:
        error.status_code = context.status_code
        error.server_variables = context.server_variables.copy() if context.server_variables is not None else None
        error.query_string = context.query_string.copy() if context.query_string is not None else None
        error.form = context.form.copy() if context.form is not None else None
        error.cookies = context.cookies.copy() if context.cookies is not None else None
        error.request_headers = context.request_headers.copy() if context.request_headers is not None else None

        # Scalars left unset are derived from server variables on first access
        if context.host is not None:
            error.host = context.host
        if context.url is not None:
            error.url = context.url
        if context.http_method is not None:
            error.http_method = context.http_method
        if context.ip_address is not None:
            error.ip_address = context.ip_address


def capture_error(
    exception: BaseException,
    context: Optional[RequestContext] = None,
    application_name: Optional[str] = None
) -> ErrorRecord:
    """Create an error record using the global settings."""
    return ErrorCapture().capture(exception, context, application_name)


def log_error(
    exception: BaseException,
    store: ErrorStore,
    context: Optional[RequestContext] = None,
    application_name: Optional[str] = None
) -> Optional[ErrorRecord]:
    """
    Capture an exception and submit it through the global pipeline.

    Args:
        exception: Exception to log
        store: Store to commit the error to
        context: Request context supplied by the host environment
        application_name: Application name overriding the configured one

    Returns:
        The logged error, or None if a before-log hook aborted it
    """
    error = capture_error(exception, context, application_name)
    if not get_pipeline().submit(error, store):
        return None
    return error
