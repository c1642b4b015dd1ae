"""
faultline - exception capture, rollup and logging pipeline

Basic usage:
    >>> from faultline import MemoryErrorStore, log_error
    >>> store = MemoryErrorStore()
    >>> try:
    ...     1 / 0
    ... except ZeroDivisionError as e:
    ...     error = log_error(e, store)
    >>> error.type
    'ZeroDivisionError'

Hooks:
    >>> from faultline import get_pipeline
    >>> def skip_health_checks(store, args):
    ...     if args.error.url == "/health":
    ...         args.abort = True
    >>> get_pipeline().add_before_log(skip_health_checks)
"""

from faultline.models import (
    ErrorParseError,
    ErrorRecord,
    NameValueCollection,
    RequestContext,
)
from faultline.services import (
    ChainWalker,
    ErrorCapture,
    ErrorPipeline,
    add_exception_data,
    capture_error,
    compute_error_hash,
    get_pipeline,
    log_error,
)
from faultline.stores import ErrorStore, ErrorStoreError, MemoryErrorStore

__version__ = "0.1.0"

__all__ = [
    "ErrorRecord",
    "ErrorParseError",
    "NameValueCollection",
    "RequestContext",
    "ChainWalker",
    "ErrorCapture",
    "ErrorPipeline",
    "add_exception_data",
    "capture_error",
    "compute_error_hash",
    "get_pipeline",
    "log_error",
    "ErrorStore",
    "ErrorStoreError",
    "MemoryErrorStore",
]
