"""Command-line interface for contentchecker.

Provides the entry point for running one check of the configured page
and for inspecting the stored watch state.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CAPTURE_FAILED = 1
EXIT_FATAL = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="content-checker",
        description="Check a web page region for content changes",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/contentchecker.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("check", help="Capture the page once and notify on change")
    subparsers.add_parser("state", help="Show the stored watch state without capturing")

    return parser.parse_args(argv)


def _open_repository(settings):
    from contentchecker.storage import LocalKeyValueStore, WatchStateRepository, store_name_for

    store = LocalKeyValueStore(
        root=settings.store.directory,
        name=store_name_for(settings.store.watch_key),
        public_base_url=settings.store.public_base_url,
    )
    logger.info("Using store %s at %s", store.store_name, store.path)
    return WatchStateRepository(store)


async def _check(settings) -> int:
    """Build all components and run one check."""
    from contentchecker.capture.browser import PlaywrightCapture
    from contentchecker.notify.http_backend import HttpNotificationDispatcher
    from contentchecker.watcher.checker import CaptureFailedError, ContentChecker

    repository = _open_repository(settings)

    capture = PlaywrightCapture(
        headless=settings.browser.headless,
        viewport=(settings.browser.viewport_width, settings.browser.viewport_height),
        settle_delay=settings.browser.settle_delay,
        proxy=settings.watch.proxy,
    )

    notify = settings.notify
    dispatcher = HttpNotificationDispatcher(
        store=repository.store,
        slack_webhook_url=(
            notify.slack_webhook_url.get_secret_value() if notify.slack_webhook_url else None
        ),
        mail_api_url=notify.mail_api_url,
        mail_api_token=notify.mail_api_token.get_secret_value(),
        timeout=notify.timeout,
    )

    checker = ContentChecker(
        config=settings.watch,
        capture=capture,
        repository=repository,
        dispatcher=dispatcher,
        screenshot_retries=settings.browser.screenshot_retries,
    )

    try:
        report = await checker.run()
    except CaptureFailedError as e:
        logger.error("%s", e)
        return EXIT_CAPTURE_FAILED

    print(f"Result: {report.decision.kind}")
    for name, locator in report.locators.items():
        print(f"  {name}: {locator}")
    for error in report.dispatch_errors:
        print(f"  notification failed: {error}")
    logger.info("Done.")
    return EXIT_OK


async def _show_state(settings) -> int:
    """Print the stored watch state."""
    repository = _open_repository(settings)
    state = await repository.load()
    print(f"Store: {repository.store.store_name}")
    if state.is_empty:
        print("No run recorded yet.")
        return EXIT_OK
    print(f"Current data:  {state.current.text!r}")
    if state.previous is not None:
        print(f"Previous data: {state.previous.text!r}")
    for name, locator in repository.locators(state).items():
        print(f"  {name}: {locator}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the content-checker CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from contentchecker.config.settings import load_settings
    from contentchecker.storage.base import StoreError
    from contentchecker.utils.logging import setup_logging

    try:
        settings = load_settings(args.config)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(EXIT_FATAL)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        if args.command == "check":
            logger.info("Checking %s", settings.watch.url)
            code = asyncio.run(_check(settings))
        else:
            code = asyncio.run(_show_state(settings))
    except StoreError as e:
        logger.error("Store %s unavailable: %s", e.store_name, e)
        code = EXIT_FATAL

    sys.exit(code)


if __name__ == "__main__":
    main()
