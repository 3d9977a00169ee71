"""pagescript Target Resolver -- picks the first present and visible candidate.

Candidates are probed strictly in priority order.  Each probe waits at most
``probe_timeout_ms`` for the selector to attach, then checks that the element
is actually rendered.  A present-but-hidden element is recorded and skipped,
which separates "wrong selector" from "right selector, currently hidden"
when debugging an instruction file.

Resolution never mutates the page.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from pagescript.engine.browser_session import DriverError, is_session_closed_error
from pagescript.engine.selectors import generate_candidates
from pagescript.models import DEFAULT_PROBE_TIMEOUT_MS

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle, Page

logger = logging.getLogger("pagescript.engine.resolver")

VISIBILITY_SCRIPT = """(el) => {
    if (!el.isConnected) return false;
    if (el.getClientRects().length === 0) return false;
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden') return false;
    if (Number(style.opacity) === 0) return false;
    const rect = el.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0;
}"""

AcceptPredicate = Callable[["ElementHandle"], Awaitable[bool]]


class TargetNotFoundError(Exception):
    """Raised when no candidate selector resolved to a visible element."""

    def __init__(self, description: str, tried: int = 0, hidden: list[str] | None = None) -> None:
        self.description = description
        self.tried = tried
        self.hidden = hidden or []
        message = f"Could not find element matching: {description}"
        if self.hidden:
            message += f" ({len(self.hidden)} match(es) found but not visible: {', '.join(self.hidden[:3])})"
        super().__init__(message)


@dataclasses.dataclass
class ResolvedTarget:
    """Outcome of resolving a candidate list."""

    selector: str | None
    tried: int = 0
    hidden: list[str] = dataclasses.field(default_factory=list)
    rejected: list[str] = dataclasses.field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.selector is not None


class TargetResolver:
    """Tests selector candidates against the live page."""

    def __init__(self, probe_timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS) -> None:
        self.probe_timeout_ms = probe_timeout_ms

    async def resolve(
        self,
        page: Page,
        candidates: list[str],
        accept: AcceptPredicate | None = None,
    ) -> ResolvedTarget:
        """Return the first candidate that is present, visible and accepted.

        Args:
            page: Page to probe.
            candidates: Selectors in priority order.
            accept: Optional extra filter on the matched element; a ``False``
                result moves on to the next candidate.

        Raises:
            DriverError: If the page or browser has been closed.
        """
        result = ResolvedTarget(selector=None)
        for candidate in candidates:
            result.tried += 1
            handle = await self._probe(page, candidate)
            if handle is None:
                continue

            if not await self._is_visible(handle):
                logger.debug("Found but not visible: %s", candidate)
                result.hidden.append(candidate)
                continue

            if accept is not None and not await accept(handle):
                logger.debug("Found but rejected: %s", candidate)
                result.rejected.append(candidate)
                continue

            logger.debug("Resolved %s after %d probe(s)", candidate, result.tried)
            result.selector = candidate
            return result

        logger.debug("No candidate resolved (%d tried, %d hidden)", result.tried, len(result.hidden))
        return result

    async def _probe(self, page: Page, selector: str) -> Any:
        """Wait briefly for a selector to attach. Returns the handle or None."""
        try:
            return await page.wait_for_selector(selector, timeout=self.probe_timeout_ms, state="attached")
        except PlaywrightError as exc:
            if is_session_closed_error(exc):
                raise DriverError(f"Browser session is gone: {exc}") from exc
            # Timeout or selector syntax the engine rejects -- next candidate
            return None

    async def _is_visible(self, handle: ElementHandle) -> bool:
        try:
            return bool(await handle.evaluate(VISIBILITY_SCRIPT))
        except PlaywrightError as exc:
            if is_session_closed_error(exc):
                raise DriverError(f"Browser session is gone: {exc}") from exc
            # Element detached between probe and check
            return False


async def resolve_target(
    page: Page,
    resolver: TargetResolver,
    description: str,
    groups: tuple[str, ...] | None = None,
) -> str:
    """Generate candidates for a description and resolve them.

    Returns:
        The winning selector.

    Raises:
        TargetNotFoundError: If no candidate resolved.
    """
    candidates = generate_candidates(description, groups=groups)
    resolved = await resolver.resolve(page, candidates)
    if not resolved.found:
        raise TargetNotFoundError(description, tried=resolved.tried, hidden=resolved.hidden)
    logger.info("Found matching element with selector: %s", resolved.selector)
    return resolved.selector  # type: ignore[return-value]
