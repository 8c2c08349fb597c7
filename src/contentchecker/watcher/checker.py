"""Run orchestrator for one content check.

Sequences: load state -> capture -> classify + persist -> notify -> report.
A capture failure preempts everything after it and takes the error path:
full-page screenshot, optional error mail, abort without touching the
watch state.
"""

from __future__ import annotations

import logging
from typing import Any, NoReturn

from contentchecker.capture.base import CaptureAdapter, CaptureError
from contentchecker.config.settings import WatchConfig
from contentchecker.domain.models import (
    CaptureTarget,
    Changed,
    NotificationContext,
    Observation,
    RunReport,
    WatchState,
)
from contentchecker.notify.base import DispatchError, NotificationDispatcher
from contentchecker.notify.composer import compose, compose_error, describe_failure
from contentchecker.storage.state import CURRENT_SCREENSHOT, WatchStateRepository
from contentchecker.watcher.change import ChangeDetector, rotate

logger = logging.getLogger(__name__)


class CaptureFailedError(Exception):
    """Raised when the run was aborted by a capture failure.

    The watch state is unchanged. ``diagnostic_locator`` points at the
    full-page screenshot left behind, if one could be made.
    """

    def __init__(
        self,
        message: str,
        target: CaptureTarget,
        diagnostic_locator: str | None = None,
    ) -> None:
        super().__init__(message)
        self.target = target
        self.diagnostic_locator = diagnostic_locator


class ContentChecker:
    """Performs one check of the watched page."""

    def __init__(
        self,
        config: WatchConfig,
        capture: CaptureAdapter,
        repository: WatchStateRepository,
        dispatcher: NotificationDispatcher,
        screenshot_retries: int = 10,
    ) -> None:
        self._config = config
        self._capture = capture
        self._repository = repository
        self._dispatcher = dispatcher
        self._screenshot_retries = screenshot_retries

    def _context(self) -> NotificationContext:
        return NotificationContext(
            url=self._config.url,
            store_locator=self._repository.store.record_url(CURRENT_SCREENSHOT),
            recipients=self._config.send_notification_to,
            operator_note=self._config.send_notification_text,
        )

    async def run(self) -> RunReport:
        """Run one check.

        Raises:
            StoreError: If the watch state cannot be read or written.
            CaptureFailedError: If the page, screenshot or text capture failed.
        """
        prior = await self._repository.load()
        observation = await self._observe()

        logger.info("Previous data: %s", prior.current.text if prior.current else None)
        logger.info("Current data: %s", observation.text)

        decision = await ChangeDetector(self._repository).decide(prior, observation)
        report = RunReport(decision=decision)

        if isinstance(decision, Changed):
            report.dispatch_errors = await self._notify(decision)

        report.locators = self._report_locators(rotate(prior, observation))
        return report

    async def _observe(self) -> Observation:
        try:
            async with self._capture:
                page: Any = None
                try:
                    page = await self._capture.capture_page(
                        self._config.url, self._config.navigation_timeout
                    )
                    logger.info("Saving screenshot...")
                    image = await self._capture.capture_element_image(
                        page, self._config.screenshot_selector, self._screenshot_retries
                    )
                    logger.info("Saving data...")
                    text = await self._capture.capture_text(page, self._config.content_selector)
                except CaptureError as e:
                    await self._abort_on_capture_failure(e.page if e.page is not None else page, e)
        except CaptureError as e:
            # Browser never started, so there is no page to fall back on
            await self._abort_on_capture_failure(None, e)
        return Observation(text=text, image=image)

    async def _abort_on_capture_failure(self, page: Any, error: CaptureError) -> NoReturn:
        """Leave a full-page screenshot behind, optionally report, then abort."""
        logger.error("Capture of %s failed: %s", error.target.value, error)
        image = None
        locator = None
        if page is not None:
            try:
                image = await self._capture.capture_full_page(page)
            except CaptureError as e:
                logger.error("Full-page fallback failed: %s", e)
        if image is not None:
            locator = await self._repository.save_diagnostic(image)

        message = describe_failure(error.target, locator)
        if self._config.inform_on_error:
            await self._send_error_mail(message, image)
        raise CaptureFailedError(message, target=error.target, diagnostic_locator=locator) from error

    async def _send_error_mail(self, message: str, image: bytes | None) -> None:
        if not self._config.send_notification_to:
            logger.warning("inform_on_error is set but there are no recipients")
            return
        envelope = compose_error(message, self._context(), image)
        try:
            async with self._dispatcher:
                await self._dispatcher.send_mail(envelope)
        except DispatchError as e:
            logger.error("Error notification failed (%s): %s", e.channel, e)

    async def _notify(self, decision: Changed) -> list[str]:
        """Dispatch the change notification once per channel; collect failures."""
        payload = compose(decision, self._context())
        errors: list[str] = []
        async with self._dispatcher:
            try:
                await self._dispatcher.publish_structured_message(payload.message)
            except DispatchError as e:
                logger.error("Chat message failed: %s", e)
                errors.append(str(e))
            if not payload.mail.to:
                logger.warning("No notification recipients configured, mail not sent")
                return errors
            try:
                await self._dispatcher.send_mail(payload.mail)
            except DispatchError as e:
                logger.error("Mail failed: %s", e)
                errors.append(str(e))
        return errors

    def _report_locators(self, state: WatchState) -> dict[str, str]:
        locators = self._repository.locators(state)
        logger.info("You can check the output in the named key-value store on the following URLs:")
        for locator in locators.values():
            logger.info("- %s", locator)
        return locators
