"""Event payloads passed to error pipeline hooks."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .error import ErrorRecord


class SubmissionState(str, Enum):
    """States of a single error submission."""

    CREATED = "created"
    BEFORE_HOOK_RUN = "before_hook_run"
    ABORTED = "aborted"
    COMMITTED = "committed"
    AFTER_HOOK_RUN = "after_hook_run"


class BeforeLogEventArgs(BaseModel):
    """Passed to before-log hooks; set abort to stop the error being logged."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    error: ErrorRecord
    abort: bool = False


class AfterLogEventArgs(BaseModel):
    """Passed to after-log hooks once the error has been committed."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    error: ErrorRecord
