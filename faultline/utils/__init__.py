"""
Utility modules for faultline.
"""

from faultline.utils.logging import (
    get_logger,
    setup_logging,
    log_submission_state,
    log_error_with_context,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_submission_state",
    "log_error_with_context",
]
