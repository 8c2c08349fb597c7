"""Abstract base class for named key-value stores.

A store holds the records of one watch: the current and previous
screenshots and texts plus the diagnostic full-page screenshot. Values are
either raw bytes (images) or JSON-serializable data (texts, messages).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

STORE_NAME_PREFIX = "content-checker-store-"


def store_name_for(watch_key: str) -> str:
    """Name of the store holding the state of one watch."""
    return STORE_NAME_PREFIX + watch_key


class StoreRecord(BaseModel):
    """One value to write, with an optional content type hint."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    value: Any
    content_type: str | None = Field(
        default=None,
        description="MIME type; inferred from the value when omitted",
    )


class KeyValueStore(ABC):
    """Abstract interface for a durable named key-value store.

    Implementations must make :meth:`set_many` all-or-nothing from the
    point of view of a later reader.
    """

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def store_name(self) -> str:
        return self._name

    @abstractmethod
    async def get(self, key: str) -> Any:
        """Return the stored value, or None if the key is absent.

        Bytes records come back as ``bytes``, JSON records decoded, text
        records as ``str``.

        Raises:
            StoreError: If the store cannot be read.
        """
        ...

    @abstractmethod
    async def set_many(self, records: list[StoreRecord]) -> None:
        """Write several records as one atomic unit.

        Raises:
            StoreError: If the write fails. No record of the batch is
                visible afterwards.
        """
        ...

    @abstractmethod
    def record_url(self, key: str) -> str:
        """Return a locator under which the record can be fetched."""
        ...

    async def set(self, key: str, value: Any, content_type: str | None = None) -> None:
        """Write a single record."""
        await self.set_many([StoreRecord(key=key, value=value, content_type=content_type)])


class StoreError(Exception):
    """Raised when the store cannot be read or written."""

    def __init__(self, message: str, store_name: str = "") -> None:
        super().__init__(message)
        self.store_name = store_name
