"""pagescript Browser Session -- Playwright browser lifecycle.

Launches the configured browser, opens one context with the configured
viewport and default timeouts, and hands out the first page.  The context is
the source of "new page" events that keep the active page current when an
instruction opens a tab.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pagescript.config import PageScriptConfig

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

logger = logging.getLogger("pagescript.engine.browser_session")

# Playwright error substrings meaning the session itself is gone.
_SESSION_CLOSED_ERRORS: tuple[str, ...] = (
    "has been closed",
    "Target closed",
    "Browser closed",
    "Connection closed",
)


class DriverError(Exception):
    """Raised when the browser session can no longer serve requests."""

    pass


def is_session_closed_error(error: BaseException) -> bool:
    """Check whether an exception means the page, context or browser is gone."""
    msg = str(error)
    return any(pattern in msg for pattern in _SESSION_CLOSED_ERRORS)


class BrowserSession:
    """Owns the Playwright driver, browser, context and first page.

    Usage::

        async with BrowserSession(config) as session:
            runner = InstructionRunner(ActivePage.attach(session.context, session.page), ...)
    """

    def __init__(self, config: PageScriptConfig) -> None:
        self._config = config

        # Managed browser lifecycle -- set by start()/stop()
        self._playwright: Any = None
        self._browser: Any = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise DriverError("Browser session not started")
        return self._context

    @property
    def page(self) -> Page:
        if self._page is None:
            raise DriverError("Browser session not started")
        return self._page

    # -- Browser Lifecycle ---------------------------------------------------

    async def start(self) -> None:
        """Launch the browser and open the first page."""
        from playwright.async_api import async_playwright

        cfg = self._config
        self._playwright = await async_playwright().start()
        browser_type = getattr(self._playwright, cfg.browser)
        logger.info("Launching %s (headless=%s)", cfg.browser, cfg.headless)
        self._browser = await browser_type.launch(headless=cfg.headless)

        self._context = await self._browser.new_context(
            viewport={"width": cfg.viewport[0], "height": cfg.viewport[1]},
        )
        self._context.set_default_navigation_timeout(cfg.navigation_timeout_ms)
        self._context.set_default_timeout(cfg.action_timeout_ms)
        self._page = await self._context.new_page()

    async def stop(self) -> None:
        """Close the context, browser and Playwright driver."""
        try:
            if self._context is not None:
                await self._context.close()
        except Exception as exc:
            logger.debug("Error closing context: %s", exc)
        try:
            if self._browser is not None:
                await self._browser.close()
        except Exception as exc:
            logger.debug("Error closing browser: %s", exc)
        try:
            if self._playwright is not None:
                await self._playwright.stop()
        except Exception as exc:
            logger.debug("Error stopping Playwright: %s", exc)
        self._context = None
        self._browser = None
        self._playwright = None
        self._page = None

    async def __aenter__(self) -> BrowserSession:
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
