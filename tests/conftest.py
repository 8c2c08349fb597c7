"""Shared test fixtures for the contentchecker test suite.

Provides common fixtures used across unit tests: sample screenshots,
watch configuration, a store in a temporary directory, and mock capture
and dispatch collaborators.
"""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from contentchecker.capture.base import CaptureAdapter
from contentchecker.config.settings import WatchConfig
from contentchecker.domain.models import CurrentSlot, Observation, WatchState
from contentchecker.notify.base import NotificationDispatcher
from contentchecker.storage.local import LocalKeyValueStore
from contentchecker.storage.state import WatchStateRepository


def make_png(color: tuple[int, int, int], size: tuple[int, int] = (4, 3)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Image / Observation Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def old_png() -> bytes:
    """A small red PNG standing in for an earlier screenshot."""
    return make_png((255, 0, 0))


@pytest.fixture
def new_png() -> bytes:
    """A small blue PNG standing in for this run's screenshot."""
    return make_png((0, 0, 255))


@pytest.fixture
def fullpage_png() -> bytes:
    return make_png((0, 255, 0), size=(8, 16))


@pytest.fixture
def hello_state(old_png: bytes) -> WatchState:
    """State after one earlier run that read 'Hello'."""
    return WatchState(current=CurrentSlot(text="Hello", image=old_png))


@pytest.fixture
def world_observation(new_png: bytes) -> Observation:
    return Observation(text="World", image=new_png)


# ---------------------------------------------------------------------------
# Configuration / Storage Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def watch_config() -> WatchConfig:
    return WatchConfig(
        url="https://example.com/pricing",
        content_selector="#price",
        screenshot_selector=".pricing-table",
        send_notification_to="ops@example.com",
        inform_on_error="true",
    )


@pytest.fixture
def store(tmp_path: Path) -> LocalKeyValueStore:
    return LocalKeyValueStore(root=tmp_path, name="content-checker-store-test")


@pytest.fixture
def repository(store: LocalKeyValueStore) -> WatchStateRepository:
    return WatchStateRepository(store)


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_capture(new_png: bytes, fullpage_png: bytes) -> AsyncMock:
    """A CaptureAdapter double that reads 'World' and returns new_png."""
    mock = AsyncMock(spec=CaptureAdapter)
    mock.capture_page.return_value = "page-handle"
    mock.capture_element_image.return_value = new_png
    mock.capture_text.return_value = "World"
    mock.capture_full_page.return_value = fullpage_png
    return mock


@pytest.fixture
def mock_dispatcher() -> AsyncMock:
    """A NotificationDispatcher double that accepts everything."""
    return AsyncMock(spec=NotificationDispatcher)
