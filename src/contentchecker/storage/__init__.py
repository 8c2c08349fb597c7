"""State storage for contentchecker.

Public API:
    KeyValueStore -- Abstract base class
    LocalKeyValueStore -- Directory-backed implementation
    WatchStateRepository -- Two-slot state on top of a store
    StoreError -- Raised on any read/write failure
"""

from contentchecker.storage.base import (
    KeyValueStore,
    StoreError,
    StoreRecord,
    store_name_for,
)
from contentchecker.storage.local import LocalKeyValueStore
from contentchecker.storage.state import WatchStateRepository

__all__ = [
    "KeyValueStore",
    "LocalKeyValueStore",
    "StoreError",
    "StoreRecord",
    "WatchStateRepository",
    "store_name_for",
]
