"""Page capture module for contentchecker.

Provides browser-driven extraction of an element screenshot, an
element's text content and a full-page fallback screenshot.

Public API:
    CaptureAdapter -- Abstract base class
    CaptureError -- Raised on any capture failure
    PlaywrightCapture -- Chromium implementation via Playwright
"""

from contentchecker.capture.base import CaptureAdapter, CaptureError

__all__ = ["CaptureAdapter", "CaptureError", "PlaywrightCapture"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "PlaywrightCapture":
        from contentchecker.capture.browser import PlaywrightCapture
        return PlaywrightCapture
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
