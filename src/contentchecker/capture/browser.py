"""Browser capture implementation using Playwright.

Drives a headless Chromium to load the watched page and extract element
screenshots and text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from contentchecker.capture.base import CaptureAdapter, CaptureError
from contentchecker.config.settings import ProxyConfig
from contentchecker.domain.models import CaptureTarget
from contentchecker.utils.imaging import image_size

logger = logging.getLogger(__name__)


class PlaywrightCapture(CaptureAdapter):
    """Captures page regions with Playwright's async Chromium driver.

    Playwright's TimeoutError subclasses its base Error, so timeouts and
    missing elements both surface as CaptureError.
    """

    def __init__(
        self,
        headless: bool = True,
        viewport: tuple[int, int] = (1920, 1080),
        settle_delay: float = 5.0,
        proxy: ProxyConfig | None = None,
        retry_interval: float = 1.0,
    ) -> None:
        super().__init__()
        self._headless = headless
        self._viewport = viewport
        self._settle_delay = settle_delay
        self._proxy = proxy or ProxyConfig()
        self._retry_interval = retry_interval
        self._playwright = None
        self._browser = None

    def _launch_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"headless": self._headless}
        if self._proxy.server:
            proxy: dict[str, str] = {"server": self._proxy.server}
            if self._proxy.username:
                proxy["username"] = self._proxy.username
            if self._proxy.password is not None:
                proxy["password"] = self._proxy.password.get_secret_value()
            options["proxy"] = proxy
        return options

    async def open(self) -> None:
        """Launch Chromium."""
        logger.info("Launching browser...")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(**self._launch_options())
        except PlaywrightError as e:
            await self.close()
            raise CaptureError(
                f"Failed to launch browser: {e}", target=CaptureTarget.NAVIGATION
            ) from e
        self._is_open = True

    async def close(self) -> None:
        """Close the browser and stop the Playwright driver.

        Shutdown errors are logged and never raised.
        """
        if self._browser is not None:
            try:
                await self._browser.close()
                logger.info("Closed browser")
            except PlaywrightError as e:
                logger.warning("Error closing browser: %s", e)
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning("Error stopping Playwright: %s", e)
        self._browser = None
        self._playwright = None
        self._is_open = False

    async def capture_page(self, url: str, navigation_timeout: int) -> Page:
        if not self.is_open or self._browser is None:
            raise CaptureError("Browser is not open", target=CaptureTarget.NAVIGATION)
        width, height = self._viewport
        try:
            page = await self._browser.new_page(viewport={"width": width, "height": height})
        except PlaywrightError as e:
            raise CaptureError(
                f"Cannot open a browser page: {e}", target=CaptureTarget.NAVIGATION
            ) from e
        logger.info("Opening URL: %s", url)
        try:
            await page.goto(url, wait_until="networkidle", timeout=navigation_timeout)
        except PlaywrightError as e:
            raise CaptureError(
                f"Cannot open {url} within {navigation_timeout} ms: {e}",
                target=CaptureTarget.NAVIGATION,
                page=page,
            ) from e
        # Dynamic content may still be rendering after network idle
        if self._settle_delay:
            logger.info("Sleeping %.0fs ...", self._settle_delay)
            await asyncio.sleep(self._settle_delay)
        return page

    async def capture_element_image(self, page: Page, selector: str, retries: int) -> bytes:
        for attempt in range(1, retries + 1):
            try:
                element = await page.query_selector(selector)
                if element is not None:
                    data = await element.screenshot(type="png")
                    width, height = image_size(data)
                    logger.info("Captured %dx%d screenshot of %s", width, height, selector)
                    return data
            except (PlaywrightError, ValueError) as e:
                raise CaptureError(
                    f"Screenshot of {selector!r} failed: {e}",
                    target=CaptureTarget.SCREENSHOT,
                    page=page,
                ) from e
            logger.debug("Element %s not found (attempt %d/%d)", selector, attempt, retries)
            if attempt < retries:
                await asyncio.sleep(self._retry_interval)
        raise CaptureError(
            f"Element {selector!r} not found after {retries} attempts",
            target=CaptureTarget.SCREENSHOT,
            page=page,
        )

    async def capture_text(self, page: Page, selector: str) -> str:
        try:
            text = await page.eval_on_selector(selector, "el => el.textContent")
        except PlaywrightError as e:
            raise CaptureError(
                f"Cannot read text of {selector!r}: {e}",
                target=CaptureTarget.CONTENT,
                page=page,
            ) from e
        return text if text is not None else ""

    async def capture_full_page(self, page: Page) -> bytes:
        try:
            return await page.screenshot(full_page=True, type="png")
        except PlaywrightError as e:
            raise CaptureError(
                f"Full-page screenshot failed: {e}",
                target=CaptureTarget.FULL_PAGE,
                page=page,
            ) from e
