"""
In-memory error store.

Keeps private copies of the most recent errors, newest first, and rolls up
errors whose fingerprint matches an error logged within the rollup period.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Union
from uuid import UUID

from faultline.config import Settings
from faultline.models.error import ErrorRecord
from faultline.stores.base import ErrorStore
from faultline.utils.logging import get_logger

logger = get_logger(__name__, store="memory")


class MemoryErrorStore(ErrorStore):
    """In-memory error store with rollup and a size limit."""

    def __init__(
        self,
        size: Optional[int] = None,
        rollup_period: Optional[timedelta] = None,
        settings: Optional[Settings] = None
    ):
        """
        Initialize the memory store.

        Args:
            size: Maximum number of errors to keep. If None, uses
                settings.memory_store_size.
            rollup_period: Window in which matching errors are counted as
                duplicates; a zero period disables rollup. If None, uses
                settings.rollup_period_seconds.
            settings: Settings to take defaults from. If None, will load
                from global settings.
        """
        if settings is None:
            from faultline.config import settings as global_settings
            settings = global_settings

        if size is None:
            size = settings.memory_store_size
        if rollup_period is None:
            rollup_period = timedelta(seconds=settings.rollup_period_seconds)

        if size < 1:
            raise ValueError("size must be at least 1")

        self.size = size
        self.rollup_period = rollup_period
        self._errors: List[ErrorRecord] = []
        self._lock = threading.Lock()
        self._next_id = 1

    @property
    def name(self) -> str:
        return "memory"

    def log(self, error: ErrorRecord) -> None:
        """
        Commit a copy of the error, or roll it up into a recent match.

        Sets error.is_duplicate when the error was rolled up and error.id to
        the id of the stored error.

        Args:
            error: Error to commit
        """
        now = datetime.now(timezone.utc)

        with self._lock:
            original = self._find_rollup_match(error, now)
            if original is not None:
                original.duplicate_count += 1
                original.last_log_date = now
                error.is_duplicate = True
                error.id = original.id
                logger.debug(
                    f"Rolled up error into {original.guid}",
                    extra={"guid": str(error.guid), "error_hash": error.error_hash}
                )
                return

            error.id = self._next_id
            self._next_id += 1

            stored = error.clone()
            stored.last_log_date = stored.last_log_date or stored.creation_date
            self._errors.insert(0, stored)

            # Trim if we exceed size
            if len(self._errors) > self.size:
                del self._errors[self.size:]

        logger.debug("Stored error", extra={"guid": str(error.guid), "error_hash": error.error_hash})

    def _find_rollup_match(self, error: ErrorRecord, now: datetime) -> Optional[ErrorRecord]:
        if not self.rollup_period or error.error_hash is None:
            return None

        cutoff = now - self.rollup_period
        for candidate in self._errors:
            if candidate.error_hash != error.error_hash or candidate.deletion_date is not None:
                continue
            if (candidate.last_log_date or candidate.creation_date) >= cutoff:
                return candidate
        return None

    def get(self, guid: Union[UUID, str]) -> Optional[ErrorRecord]:
        """
        Get a copy of a stored error by GUID.

        Args:
            guid: GUID of the error

        Returns:
            Copy of the error, or None if not found
        """
        guid = UUID(str(guid))
        with self._lock:
            for error in self._errors:
                if error.guid == guid:
                    return error.clone()
        return None

    def get_all(self, include_deleted: bool = False) -> List[ErrorRecord]:
        """Get copies of all stored errors, newest first."""
        with self._lock:
            return [
                error.clone()
                for error in self._errors
                if include_deleted or error.deletion_date is None
            ]

    def delete(self, guid: Union[UUID, str]) -> bool:
        """
        Mark an error as deleted unless it is protected.

        Args:
            guid: GUID of the error

        Returns:
            True if the error was marked deleted
        """
        guid = UUID(str(guid))
        with self._lock:
            for error in self._errors:
                if error.guid == guid and not error.is_protected:
                    error.deletion_date = datetime.now(timezone.utc)
                    return True
        return False

    def protect(self, guid: Union[UUID, str]) -> bool:
        """Protect an error from deletion; returns False if not found."""
        guid = UUID(str(guid))
        with self._lock:
            for error in self._errors:
                if error.guid == guid:
                    error.is_protected = True
                    return True
        return False

    def count(self) -> int:
        """Number of errors currently held (deleted included)."""
        with self._lock:
            return len(self._errors)
