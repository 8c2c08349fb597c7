"""Mapping between the two-slot watch state and store records.

The record names are part of the durable contract with stores written by
earlier runs and must not change.
"""

from __future__ import annotations

import logging

from contentchecker.domain.models import CurrentSlot, PreviousSlot, WatchState
from contentchecker.storage.base import KeyValueStore, StoreRecord

logger = logging.getLogger(__name__)

CURRENT_SCREENSHOT = "currentScreenshot.png"
PREVIOUS_SCREENSHOT = "previousScreenshot.png"
CURRENT_DATA = "currentData"
PREVIOUS_DATA = "previousData"
FULLPAGE_SCREENSHOT = "fullpageScreenshot.png"

PNG_CONTENT_TYPE = "image/png"


class WatchStateRepository:
    """Loads and saves the :class:`WatchState` of one watch."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def load(self) -> WatchState:
        """Read both slots. The current slot exists iff its screenshot does."""
        current_image = await self._store.get(CURRENT_SCREENSHOT)
        if current_image is None:
            return WatchState()
        current = CurrentSlot(text=await self._store.get(CURRENT_DATA), image=current_image)

        previous = None
        previous_image = await self._store.get(PREVIOUS_SCREENSHOT)
        if previous_image is not None:
            previous = PreviousSlot(text=await self._store.get(PREVIOUS_DATA), image=previous_image)
        return WatchState(previous=previous, current=current)

    async def save(self, state: WatchState) -> None:
        """Write every present slot in one atomic batch."""
        records: list[StoreRecord] = []
        if state.previous is not None:
            if state.previous.image is not None:
                records.append(StoreRecord(
                    key=PREVIOUS_SCREENSHOT, value=state.previous.image,
                    content_type=PNG_CONTENT_TYPE,
                ))
            records.append(StoreRecord(key=PREVIOUS_DATA, value=state.previous.text))
        if state.current is not None:
            records.append(StoreRecord(
                key=CURRENT_SCREENSHOT, value=state.current.image,
                content_type=PNG_CONTENT_TYPE,
            ))
            records.append(StoreRecord(key=CURRENT_DATA, value=state.current.text))
        if not records:
            return
        await self._store.set_many(records)

    async def save_diagnostic(self, image: bytes) -> str:
        """Store the full-page fallback screenshot and return its locator."""
        await self._store.set(FULLPAGE_SCREENSHOT, image, content_type=PNG_CONTENT_TYPE)
        return self._store.record_url(FULLPAGE_SCREENSHOT)

    def locators(self, state: WatchState) -> dict[str, str]:
        """Locators of the records that hold ``state``."""
        keys = []
        if state.current is not None:
            keys += [CURRENT_SCREENSHOT, CURRENT_DATA]
        if state.previous is not None:
            keys += [PREVIOUS_SCREENSHOT, PREVIOUS_DATA]
        return {key: self._store.record_url(key) for key in keys}
