"""Error store interface and the in-memory store."""

from faultline.stores.base import ErrorStore, ErrorStoreError
from faultline.stores.memory import MemoryErrorStore

__all__ = ['ErrorStore', 'ErrorStoreError', 'MemoryErrorStore']
