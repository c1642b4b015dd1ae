"""Error capture and logging services package."""

from faultline.services.chain_walker import (
    ChainWalker,
    add_exception_data,
    get_exception_data,
    is_builtin_exception
)
from faultline.services.hashing import (
    compute_error_hash,
    stable_string_hash
)
from faultline.services.pipeline import (
    ErrorPipeline,
    get_pipeline
)
from faultline.services.capture import (
    ErrorCapture,
    capture_error,
    log_error
)

__all__ = [
    'ChainWalker',
    'add_exception_data',
    'get_exception_data',
    'is_builtin_exception',
    'compute_error_hash',
    'stable_string_hash',
    'ErrorPipeline',
    'get_pipeline',
    'ErrorCapture',
    'capture_error',
    'log_error'
]
