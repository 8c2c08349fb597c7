"""Abstract base class for page capture adapters.

All capture implementations must conform to this interface, enabling the
checker to swap the real browser for a scripted test double without
changing the rest of the run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from contentchecker.domain.models import CaptureTarget

logger = logging.getLogger(__name__)


class CaptureAdapter(ABC):
    """Abstract interface for extracting text and images from a web page.

    The page handle returned by :meth:`capture_page` is opaque to callers;
    it is only ever handed back to the same adapter.

    Example usage::

        async with PlaywrightCapture() as capture:
            page = await capture.capture_page(url, navigation_timeout=30000)
            image = await capture.capture_element_image(page, "#price", retries=10)
            text = await capture.capture_text(page, "#price")
    """

    def __init__(self) -> None:
        self._is_open: bool = False

    @property
    def is_open(self) -> bool:
        """Whether the underlying browser is running."""
        return self._is_open

    @abstractmethod
    async def open(self) -> None:
        """Start the browser.

        Raises:
            CaptureError: If the browser cannot be launched.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Shut the browser down. Safe to call multiple times."""
        ...

    @abstractmethod
    async def capture_page(self, url: str, navigation_timeout: int) -> Any:
        """Open a new page and navigate to ``url``.

        Args:
            url: Page to load.
            navigation_timeout: Navigation timeout in milliseconds.

        Returns:
            An opaque page handle.

        Raises:
            CaptureError: With target NAVIGATION on timeout or network
                failure. The error carries the page handle when one was
                created, so a full-page fallback can still be taken.
        """
        ...

    @abstractmethod
    async def capture_element_image(self, page: Any, selector: str, retries: int) -> bytes:
        """Screenshot the bounding box of the first element matching ``selector``.

        Raises:
            CaptureError: With target SCREENSHOT if the element never appears
                within ``retries`` attempts or the screenshot fails.
        """
        ...

    @abstractmethod
    async def capture_text(self, page: Any, selector: str) -> str:
        """Return the ``textContent`` of the first element matching ``selector``.

        Raises:
            CaptureError: With target CONTENT if the element is missing.
        """
        ...

    @abstractmethod
    async def capture_full_page(self, page: Any) -> bytes:
        """Screenshot the whole scrollable page.

        Raises:
            CaptureError: With target FULL_PAGE if the screenshot fails.
        """
        ...

    async def __aenter__(self) -> CaptureAdapter:
        """Async context manager entry -- starts the browser."""
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Async context manager exit -- closes the browser."""
        await self.close()


class CaptureError(Exception):
    """Raised when a page, element or text cannot be captured."""

    def __init__(self, message: str, target: CaptureTarget, page: Any = None) -> None:
        super().__init__(message)
        self.target = target
        self.page = page
