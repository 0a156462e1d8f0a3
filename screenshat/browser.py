from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright

from screenshat.errors import CaptureError, UsageError

BROWSERS = ("chromium", "firefox", "webkit")
DEFAULT_VIEWPORT_HEIGHT = 800

logger = logging.getLogger(__name__)


def check_browser(name: str) -> str:
    if name not in BROWSERS:
        raise UsageError(
            f"Unrecognized browser: {name} (expected one of {', '.join(BROWSERS)})"
        )
    return name


@contextmanager
def open_page(
    browser_name: str,
    url: str,
    *,
    log: logging.Logger | None = None,
) -> Iterator[Page]:
    """Launch ``browser_name``, open ``url`` in a fresh page and yield the page.

    The page belongs to the caller until the block exits; the browser is
    closed afterwards even if capturing failed. Any Playwright error from
    the session, including launch and close, surfaces as :class:`CaptureError`.
    """
    log = log or logger
    check_browser(browser_name)
    try:
        with sync_playwright() as playwright:
            log.info("Launching browser")
            browser = getattr(playwright, browser_name).launch(headless=True)
            try:
                page = browser.new_page()
                log.debug("Navigating to %s", url)
                page.goto(url)
                yield page
            finally:
                log.debug("Closing browser")
                browser.close()
    except PlaywrightError as exc:
        raise CaptureError(f"{browser_name} session for {url} failed: {exc}") from exc
