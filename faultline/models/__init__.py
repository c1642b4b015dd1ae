"""Data models for error capture."""

from .chain import ChainSummary
from .context import RequestContext
from .error import ErrorParseError, ErrorRecord, get_remote_ip
from .events import AfterLogEventArgs, BeforeLogEventArgs, SubmissionState
from .name_value import NameValueCollection, NameValuePair, from_pairs, to_pairs

__all__ = [
    # Collection models
    "NameValueCollection",
    "NameValuePair",
    "to_pairs",
    "from_pairs",
    # Error models
    "ErrorRecord",
    "ErrorParseError",
    "get_remote_ip",
    "ChainSummary",
    # Context models
    "RequestContext",
    # Pipeline event models
    "SubmissionState",
    "BeforeLogEventArgs",
    "AfterLogEventArgs",
]
