"""The active page -- which tab the next instruction acts on.

The browser context announces new pages (tabs, popups) through its ``page``
event, outside the runner's own control flow.  The event handler only queues
the new page; the runner is the sole writer of ``current`` and applies queued
pages by calling ``sync()`` before each instruction.  That keeps one writer,
one reader and makes the remaining stale window explicit: an instruction that
starts before the context delivers the event still sees the old page.
"""

from __future__ import annotations

import collections
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

logger = logging.getLogger("pagescript.engine.active_page")


class ActivePage:
    """Single shared reference to the page the next instruction should use."""

    def __init__(self, page: Page, context: BrowserContext | None = None) -> None:
        self._page = page
        self._context = context
        self._pending: collections.deque[Page] = collections.deque()

    @classmethod
    def attach(cls, context: BrowserContext, page: Page) -> ActivePage:
        """Create the cell and subscribe to the context's new-page events."""
        cell = cls(page, context)
        context.on("page", cell.notify_new_page)
        return cell

    @property
    def current(self) -> Page:
        return self._page

    @property
    def pending(self) -> int:
        """Number of page events not yet applied."""
        return len(self._pending)

    def notify_new_page(self, page: Page) -> None:
        """Event callback: queue a newly created page."""
        logger.debug("New page announced: %s", getattr(page, "url", "?"))
        self._pending.append(page)

    def sync(self) -> Page:
        """Apply queued page events, then reconcile with the context.

        The most recently announced page wins.  Reconciliation then prefers
        the context's newest open page if it differs, which covers pages
        created before the subscription or events not yet delivered.  A
        closed current page falls back to the newest open one.
        """
        while self._pending:
            page = self._pending.popleft()
            if not page.is_closed():
                self._switch(page, "new page event")

        if self._context is not None:
            open_pages = [p for p in self._context.pages if not p.is_closed()]
            if open_pages and open_pages[-1] is not self._page:
                self._switch(open_pages[-1], "context reconciliation")
        return self._page

    def _switch(self, page: Page, reason: str) -> None:
        if page is self._page:
            return
        logger.info("Switching active page to %s (%s)", getattr(page, "url", "?"), reason)
        self._page = page
