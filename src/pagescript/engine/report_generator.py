"""pagescript Report Generator -- Produces run report artifacts in markdown format.

Generates a markdown report from a run's instruction results: header with the
verdict, a summary, the per-instruction table, failures in full, and any
screenshots the run saved.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any

from pagescript.engine.runner import ExecutionResult


@dataclasses.dataclass
class RunReport:
    """Complete result of a pagescript run."""

    run_id: str
    instructions_file: str
    browser: str
    viewport_size: tuple[int, int]
    start_time: str
    end_time: str
    duration_seconds: float
    results: list[ExecutionResult]

    @property
    def executed(self) -> list[ExecutionResult]:
        """Results excluding blank/comment lines."""
        return [r for r in self.results if r.action != "skip"]

    @property
    def passed(self) -> bool:
        return all(r.success for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "instructions_file": self.instructions_file,
            "browser": self.browser,
            "viewport": list(self.viewport_size),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_seconds": round(self.duration_seconds, 3),
            "passed": self.passed,
            "results": [r.to_dict() for r in self.results],
        }


class ReportGenerator:
    """Generates markdown reports from run results."""

    def generate(self, report: RunReport) -> str:
        """Generate a complete report in markdown format.

        Args:
            report: The RunReport to render.

        Returns:
            Complete markdown report as a string.
        """
        sections = [
            self._header(report),
            self._summary(report),
            self._results_table(report),
            self._failures_section(report),
            self._screenshots_section(report),
        ]
        return "\n\n".join(s for s in sections if s)

    def _header(self, r: RunReport) -> str:
        verdict = "PASS" if r.passed else "FAIL"
        return (
            f"# pagescript Report: {r.instructions_file}\n"
            f"\n"
            f"**Run ID:** {r.run_id}\n"
            f"**Browser:** {r.browser}\n"
            f"**Viewport:** {r.viewport_size[0]}x{r.viewport_size[1]}\n"
            f"**Date:** {r.start_time}\n"
            f"**Verdict:** {verdict}"
        )

    def _summary(self, r: RunReport) -> str:
        executed = r.executed
        passed_count = sum(1 for res in executed if res.success)
        return (
            f"## Summary\n"
            f"- Instructions: {passed_count}/{len(executed)} passed\n"
            f"- Skipped (blank/comment): {len(r.results) - len(executed)}\n"
            f"- Duration: {r.duration_seconds:.1f}s"
        )

    def _results_table(self, r: RunReport) -> str:
        lines = [
            "## Instruction Results",
            "| # | Instruction | Action | Result | Duration | Notes |",
            "|---|-------------|--------|--------|----------|-------|",
        ]
        for index, res in enumerate(r.results, start=1):
            if res.action == "skip":
                continue
            result_str = "PASS" if res.success else "FAIL"
            notes = res.error if not res.success else _summarize(res.result)
            if len(notes) > 80:
                notes = notes[:77] + "..."
            lines.append(
                f"| {index} | {_cell(res.instruction)} | {res.action or '-'} | {result_str} "
                f"| {res.duration_ms}ms | {_cell(notes)} |"
            )
        return "\n".join(lines)

    def _failures_section(self, r: RunReport) -> str:
        failures = [(i, res) for i, res in enumerate(r.results, start=1) if not res.success]
        if not failures:
            return "## Failures\n\nNo failures."
        lines = ["## Failures", ""]
        for index, res in failures:
            lines.append(f"- **{index}** `{res.instruction}`: {res.error}")
        return "\n".join(lines)

    def _screenshots_section(self, r: RunReport) -> str:
        paths = [
            res.result["path"]
            for res in r.results
            if res.success and res.action == "screenshot" and isinstance(res.result, dict)
        ]
        if not paths:
            return "## Screenshots\n\nNo screenshots captured."
        lines = ["## Screenshots", ""]
        for path in paths:
            lines.append(f"- `{path}`")
        return "\n".join(lines)


def _summarize(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip().replace("\n", " ")
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)


def _cell(text: str) -> str:
    """Escape a value for a markdown table cell."""
    return text.replace("|", "\\|").replace("\n", " ")
