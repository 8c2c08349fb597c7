"""Content change detection and state rotation.

Classification and rotation are pure functions over already-fetched data;
:class:`ChangeDetector` combines them with a single atomic commit of the
rotated state.
"""

from __future__ import annotations

import logging

from contentchecker.domain.models import (
    Changed,
    ChangeDecision,
    CurrentSlot,
    FirstRun,
    Observation,
    PreviousSlot,
    Unchanged,
    WatchState,
)
from contentchecker.storage.state import WatchStateRepository

logger = logging.getLogger(__name__)


def classify(prior: WatchState, observation: Observation) -> ChangeDecision:
    """Compare an observation with the stored current slot.

    Texts are compared with exact string equality: whitespace and case
    differences count as changes.
    """
    if prior.current is None:
        return FirstRun()
    if prior.current.text == observation.text:
        return Unchanged()
    return Changed(
        previous_text=prior.current.text,
        current_text=observation.text,
        previous_image=prior.current.image,
        current_image=observation.image,
    )


def rotate(prior: WatchState, observation: Observation) -> WatchState:
    """Return the state to persist after ``observation``.

    The old current slot becomes previous; on a first run previous stays
    absent. Rotation also happens when the text is unchanged so the latest
    screenshot is kept.
    """
    previous = prior.previous
    if prior.current is not None:
        previous = PreviousSlot(text=prior.current.text, image=prior.current.image)
    return WatchState(previous=previous, current=CurrentSlot.from_observation(observation))


class ChangeDetector:
    """Classifies an observation and commits the rotated state."""

    def __init__(self, repository: WatchStateRepository) -> None:
        self._repository = repository

    async def decide(self, prior: WatchState, observation: Observation) -> ChangeDecision:
        """Classify ``observation`` against ``prior`` and persist the rotation.

        Both slots are written in one batch before the decision is
        returned.

        Raises:
            StoreError: If the rotated state cannot be written.
        """
        decision = classify(prior, observation)
        await self._repository.save(rotate(prior, observation))

        if isinstance(decision, FirstRun):
            logger.warning("Running for the first time, no check")
        elif isinstance(decision, Unchanged):
            logger.warning("No change")
        else:
            logger.warning("Content changed")
        return decision
