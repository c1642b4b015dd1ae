"""
Error logging pipeline.

Submits error records to a store, running before-log and after-log hooks
around the commit:

    CREATED -> BEFORE_HOOK_RUN -> ABORTED | COMMITTED -> AFTER_HOOK_RUN

A before-log hook aborts a submission only by setting ``args.abort``. A hook
that raises is logged and otherwise ignored. Store failures propagate to the
caller; the pipeline never retries.
"""

import threading
from typing import Any, Callable, Dict, List, Optional

from faultline.models.error import ErrorRecord
from faultline.models.events import AfterLogEventArgs, BeforeLogEventArgs, SubmissionState
from faultline.stores.base import ErrorStore
from faultline.utils.logging import get_logger, log_error_with_context, log_submission_state

logger = get_logger(__name__)

BeforeLogHook = Callable[[ErrorStore, BeforeLogEventArgs], Any]
AfterLogHook = Callable[[ErrorStore, AfterLogEventArgs], Any]


class ErrorPipeline:
    """
    Hook registry and submission logic for error logging.

    One pipeline is created per application and shared by every call site.
    Hooks may be added and removed from any thread; each submission runs
    the hooks registered at the moment it reaches them, in registration
    order.
    """

    def __init__(self):
        """Initialize the pipeline with no hooks."""
        self._before_log: List[BeforeLogHook] = []
        self._after_log: List[AfterLogHook] = []
        self._lock = threading.Lock()
        self._stats: Dict[str, int] = {
            "submitted": 0,
            "committed": 0,
            "aborted": 0,
            "hook_failures": 0,
        }

    def add_before_log(self, hook: BeforeLogHook) -> None:
        """Register a hook called as hook(store, BeforeLogEventArgs) before each commit."""
        with self._lock:
            self._before_log.append(hook)

    def remove_before_log(self, hook: BeforeLogHook) -> bool:
        """Unregister a before-log hook; returns False if it was not registered."""
        with self._lock:
            if hook not in self._before_log:
                return False
            self._before_log.remove(hook)
            return True

    def add_after_log(self, hook: AfterLogHook) -> None:
        """Register a hook called as hook(store, AfterLogEventArgs) after each commit."""
        with self._lock:
            self._after_log.append(hook)

    def remove_after_log(self, hook: AfterLogHook) -> bool:
        """Unregister an after-log hook; returns False if it was not registered."""
        with self._lock:
            if hook not in self._after_log:
                return False
            self._after_log.remove(hook)
            return True

    def _snapshot(self, hooks: List[Callable]) -> List[Callable]:
        with self._lock:
            return list(hooks)

    def _count(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1

    def _run_hook(self, hook: Callable, store: ErrorStore, args: Any, stage: str) -> None:
        try:
            hook(store, args)
        except Exception as e:
            self._count("hook_failures")
            log_error_with_context(
                logger,
                f"{stage} hook {getattr(hook, '__name__', repr(hook))} failed",
                e,
                guid=str(args.error.guid),
                store=store.name
            )

    def submit(self, error: ErrorRecord, store: ErrorStore) -> bool:
        """
        Log an error to a store.

        Args:
            error: Error to log
            store: Store to commit the error to

        Returns:
            True if the error was committed, False if a before-log hook aborted it

        Raises:
            Exception: Whatever the store raises from log()
        """
        guid = str(error.guid)
        self._count("submitted")
        log_submission_state(logger, guid, SubmissionState.CREATED.value, error.error_hash, store.name)

        before_hooks = self._snapshot(self._before_log)
        if before_hooks:
            args = BeforeLogEventArgs(error=error)
            for hook in before_hooks:
                self._run_hook(hook, store, args, "before-log")
            log_submission_state(logger, guid, SubmissionState.BEFORE_HOOK_RUN.value, error.error_hash, store.name)

            if args.abort:
                self._count("aborted")
                log_submission_state(logger, guid, SubmissionState.ABORTED.value, error.error_hash, store.name)
                return False

        # Always echo the error locally for debugging
        error_logger = logger.with_context(guid=guid, error_hash=error.error_hash, store=store.name)
        if error.exception is not None:
            error_logger.debug(
                f"Logging error: {error.message}",
                exc_info=(type(error.exception), error.exception, error.exception.__traceback__)
            )
        else:
            error_logger.debug(f"Logging error: {error.message}")

        store.log(error)
        self._count("committed")
        log_submission_state(logger, guid, SubmissionState.COMMITTED.value, error.error_hash, store.name)

        after_hooks = self._snapshot(self._after_log)
        if after_hooks:
            after_args = AfterLogEventArgs(error=error)
            for hook in after_hooks:
                self._run_hook(hook, store, after_args, "after-log")
            log_submission_state(logger, guid, SubmissionState.AFTER_HOOK_RUN.value, error.error_hash, store.name)

        return True

    def get_statistics(self) -> Dict[str, int]:
        """
        Get pipeline statistics.

        Returns:
            Dictionary with submission counters and hook counts
        """
        with self._lock:
            stats = dict(self._stats)
            stats["before_log_hooks"] = len(self._before_log)
            stats["after_log_hooks"] = len(self._after_log)
        return stats


# Global pipeline instance
_pipeline: Optional[ErrorPipeline] = None
_pipeline_lock = threading.Lock()


def get_pipeline() -> ErrorPipeline:
    """
    Get the process-wide pipeline instance.

    Returns:
        ErrorPipeline instance
    """
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            _pipeline = ErrorPipeline()
        return _pipeline
