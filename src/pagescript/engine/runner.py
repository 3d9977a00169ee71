"""pagescript Instruction Runner -- executes an instruction list in order.

Every instruction produces exactly one ``ExecutionResult``, in input order.
A failure in one instruction is recorded and the run continues; only the
caller decides what a failed run means.  Before each instruction the runner
applies pending new-page events so the handler acts on the newest tab.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Iterable
from typing import Any

from pagescript.config import PageScriptConfig
from pagescript.engine.active_page import ActivePage
from pagescript.engine.browser_session import DriverError, is_session_closed_error
from pagescript.engine.parser import InstructionParser, ParseFailure
from pagescript.engine.protocols import ActionContext
from pagescript.engine.registry import ActionRegistry, default_registry
from pagescript.engine.resolver import TargetResolver

logger = logging.getLogger("pagescript.engine.runner")


@dataclasses.dataclass
class ExecutionResult:
    """Outcome of one instruction."""

    instruction: str
    success: bool
    result: Any = None
    error: str = ""
    action: str = ""
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"instruction": self.instruction, "success": self.success}
        if self.action:
            data["action"] = self.action
        if self.success:
            data["result"] = self.result
        else:
            data["error"] = self.error
        data["duration_ms"] = self.duration_ms
        return data


class InstructionRunner:
    """Parses and executes instructions against the active page."""

    def __init__(
        self,
        active_page: ActivePage,
        registry: ActionRegistry | None = None,
        parser: InstructionParser | None = None,
        resolver: TargetResolver | None = None,
        config: PageScriptConfig | None = None,
    ) -> None:
        self.config = config or PageScriptConfig()
        self.active_page = active_page
        self.registry = registry if registry is not None else default_registry()
        self.parser = parser or InstructionParser(self.registry, comment_marker=self.config.comment_marker)
        self.resolver = resolver or TargetResolver(self.config.probe_timeout_ms)

    async def run(self, instructions: Iterable[str]) -> list[ExecutionResult]:
        """Execute every instruction in order and collect one result per line."""
        lines = list(instructions)
        logger.info("Running %d instruction(s)", len(lines))
        results: list[ExecutionResult] = []
        for index, line in enumerate(lines, start=1):
            result = await self.run_one(line)
            level = logging.INFO if result.success else logging.WARNING
            logger.log(
                level,
                "[%d/%d] %s %s%s",
                index,
                len(lines),
                "ok" if result.success else "FAILED",
                result.instruction,
                "" if result.success else f" -- {result.error}",
            )
            results.append(result)
        return results

    async def run_one(self, instruction: str) -> ExecutionResult:
        """Execute a single instruction.  Never raises for instruction-level errors."""
        text = instruction.strip()
        if self.parser.is_ignorable(text):
            return ExecutionResult(instruction=text, success=True, action="skip")

        self.active_page.sync()

        parsed = self.parser.parse(text)
        if isinstance(parsed, ParseFailure):
            return ExecutionResult(instruction=text, success=False, error=parsed.reason)

        descriptor = self.registry.lookup(parsed.action_key)
        if descriptor is None:
            return ExecutionResult(
                instruction=text,
                success=False,
                error=f"Unknown action: {parsed.action_key}",
            )

        ctx = ActionContext(page=self.active_page.current, resolver=self.resolver, config=self.config)
        start = time.monotonic()
        try:
            value = await descriptor.handler(ctx, parsed.params)
        except DriverError as exc:
            return self._failure(text, descriptor.key, start, f"Browser session lost: {exc}")
        except Exception as exc:
            logger.debug("Instruction failed", exc_info=True)
            if is_session_closed_error(exc):
                return self._failure(text, descriptor.key, start, f"Browser session lost: {exc}")
            return self._failure(text, descriptor.key, start, f"{type(exc).__name__}: {exc}")

        if descriptor.opens_new_page:
            await self._settle_new_page()

        return ExecutionResult(
            instruction=text,
            success=True,
            result=value,
            action=descriptor.key,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    async def _settle_new_page(self) -> None:
        """Give a popup or new tab a moment to appear, then adopt it."""
        if self.config.new_page_settle_ms > 0:
            await asyncio.sleep(self.config.new_page_settle_ms / 1000)
        self.active_page.sync()

    @staticmethod
    def _failure(instruction: str, action: str, start: float, error: str) -> ExecutionResult:
        return ExecutionResult(
            instruction=instruction,
            success=False,
            error=error,
            action=action,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
