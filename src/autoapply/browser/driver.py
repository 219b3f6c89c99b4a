from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from autoapply.config import Settings

logger = logging.getLogger(__name__)


class BrowserError(RuntimeError):
    pass


class BrowserTimeout(BrowserError):
    pass


class NavigationTimeout(BrowserTimeout):
    pass


class FieldNotFound(BrowserError):
    pass


class SessionClosed(BrowserError):
    pass


@dataclass(slots=True)
class SessionHandle:
    """One isolated browser (own Playwright instance, browser and context) for one attempt."""

    playwright: Any
    browser: Any
    context: Any
    page: Any
    closed: bool = False
    history: list[str] = field(default_factory=list)


class BrowserSessionDriver:
    def __init__(self, settings: Settings):
        self.settings = settings

    def open(self) -> SessionHandle:
        playwright = sync_playwright().start()
        browser = None
        try:
            browser = playwright.chromium.launch(
                headless=self.settings.browser_headless,
                args=self.settings.browser_launch_args,
            )
            context = browser.new_context()
            context.set_default_timeout(self.settings.browser_action_timeout_sec * 1000)
            context.set_default_navigation_timeout(self.settings.browser_nav_timeout_sec * 1000)
            page = context.new_page()
        except Exception:
            if browser is not None:
                browser.close()
            playwright.stop()
            raise

        logger.debug("Opened isolated browser session")
        return SessionHandle(playwright=playwright, browser=browser, context=context, page=page)

    def navigate(self, handle: SessionHandle, url: str) -> None:
        page = self._page(handle)
        try:
            page.goto(url, wait_until="networkidle", timeout=self.settings.browser_nav_timeout_sec * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(
                f"Timed out after {self.settings.browser_nav_timeout_sec}s navigating to {url}"
            ) from exc
        except PlaywrightError as exc:
            raise BrowserError(f"Navigation to {url} failed: {exc}") from exc
        handle.history.append(url)

    def screenshot(self, handle: SessionHandle) -> bytes:
        return self._page(handle).screenshot(full_page=True)

    def content(self, handle: SessionHandle) -> str:
        return self._page(handle).content()

    def type(self, handle: SessionHandle, selector: str, text: str) -> None:
        locator = self._locate(handle, selector)
        try:
            locator.press_sequentially(
                text,
                delay=self.settings.browser_type_delay_ms,
                timeout=self.settings.browser_action_timeout_sec * 1000,
            )
        except PlaywrightTimeoutError as exc:
            raise BrowserTimeout(f"Timed out typing into {selector}") from exc

    def click(self, handle: SessionHandle, selector: str) -> None:
        locator = self._locate(handle, selector)
        try:
            locator.click(timeout=self.settings.browser_action_timeout_sec * 1000)
        except PlaywrightTimeoutError as exc:
            raise BrowserTimeout(f"Timed out clicking {selector}") from exc

    def close(self, handle: SessionHandle | None) -> None:
        if handle is None or handle.closed:
            return
        handle.closed = True

        for label, resource in (("context", handle.context), ("browser", handle.browser)):
            try:
                resource.close()
            except Exception as exc:
                logger.warning("Failed to close browser %s: %s", label, exc)
        try:
            handle.playwright.stop()
        except Exception as exc:
            logger.warning("Failed to stop playwright: %s", exc)

    @contextmanager
    def session(self) -> Iterator[SessionHandle]:
        handle = self.open()
        try:
            yield handle
        finally:
            self.close(handle)

    def _page(self, handle: SessionHandle) -> Any:
        if handle.closed:
            raise SessionClosed("browser session already closed")
        return handle.page

    def _locate(self, handle: SessionHandle, selector: str) -> Any:
        locator = self._page(handle).locator(selector).first
        try:
            locator.wait_for(state="attached", timeout=self.settings.browser_action_timeout_sec * 1000)
        except PlaywrightTimeoutError as exc:
            raise FieldNotFound(f"No element matches selector {selector}") from exc
        except PlaywrightError as exc:
            raise FieldNotFound(f"Invalid selector {selector}: {exc}") from exc
        return locator
