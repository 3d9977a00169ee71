"""pagescript run — Execute an instruction file in a live browser.

This is the primary command. It resolves config, launches the browser, runs
every instruction in order, and prints a Rich table of results.  A failing
instruction never stops the run; the exit code reports whether any failed.

Exit codes:
- 0: every instruction succeeded
- 1: at least one instruction failed
- 2: configuration or usage error
- 3: browser could not be launched
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

import typer
from playwright.async_api import Error as PlaywrightError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pagescript.config import PageScriptConfig, PageScriptConfigError
from pagescript.engine.active_page import ActivePage
from pagescript.engine.browser_session import BrowserSession
from pagescript.engine.report_generator import ReportGenerator, RunReport
from pagescript.engine.runner import ExecutionResult, InstructionRunner
from pagescript.models import SUPPORTED_BROWSERS

console = Console(stderr=True)
output_console = Console()  # stdout for machine-readable output

logger = logging.getLogger("pagescript.cli.run")

# ── Project / config helpers ──────────────────────────────────────────────


def resolve_project_dir(dir: Path | None = None) -> Path:
    """Find the .pagescript/ project directory, searching upward from cwd."""
    if dir is not None:
        project_dir = dir.resolve()
        return project_dir if project_dir.name == ".pagescript" else project_dir / ".pagescript"

    current = Path.cwd()
    candidate = current / ".pagescript"
    if candidate.is_dir():
        return candidate
    for parent in current.parents:
        candidate = parent / ".pagescript"
        if candidate.is_dir():
            return candidate
    return current / ".pagescript"


def load_config(project_dir: Path) -> PageScriptConfig:
    """Load .pagescript/config.yaml if present, otherwise defaults rooted at the project's parent."""
    config_path = project_dir / "config.yaml"
    if config_path.is_file():
        return PageScriptConfig.from_file(config_path)
    return PageScriptConfig._from_dict({}, project_dir)


def print_error(message: str, title: str = "Error") -> None:
    console.print(Panel(f"[red]{message}[/red]", title=f"[red]{title}[/red]", border_style="red"))


def _parse_viewport(viewport_str: str) -> tuple[int, int]:
    """Parse a 'WIDTHxHEIGHT' string into a (width, height) tuple."""
    try:
        parts = viewport_str.lower().split("x")
        if len(parts) != 2:
            raise ValueError
        return (int(parts[0]), int(parts[1]))
    except (ValueError, IndexError):
        print_error(
            f"Invalid viewport format: {escape(viewport_str)}\n\nExpected format: WIDTHxHEIGHT (e.g., 1280x720)",
            "Config Error",
        )
        raise typer.Exit(code=2)


# ── Execution ─────────────────────────────────────────────────────────────


async def _execute(config: PageScriptConfig, lines: list[str]) -> list[ExecutionResult]:
    async with BrowserSession(config) as session:
        active_page = ActivePage.attach(session.context, session.page)
        runner = InstructionRunner(active_page, config=config)
        return await runner.run(lines)


# ── Rich output helpers ───────────────────────────────────────────────────


def _format_result(value: object) -> str:
    if value is None:
        return ""
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    text = text.strip().replace("\n", " ")
    return text if len(text) <= 80 else text[:77] + "..."


def _print_results_table(results: list[ExecutionResult]) -> None:
    table = Table(title="Instruction Results", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Instruction", style="bold")
    table.add_column("Result", justify="center")
    table.add_column("Details")

    for index, res in enumerate(results, start=1):
        if res.action == "skip":
            continue
        status = "[green]PASS[/green]" if res.success else "[red]FAIL[/red]"
        # Instructions and errors are user text; selectors like [data-testid=x] are not markup
        details = escape(_format_result(res.result)) if res.success else f"[red]{escape(res.error)}[/red]"
        table.add_row(str(index), escape(res.instruction), status, details)

    console.print()
    console.print(table)


def _print_summary(report: RunReport) -> None:
    executed = report.executed
    passed = sum(1 for r in executed if r.success)
    failed = len(executed) - passed
    style = "green" if report.passed else "red"
    verdict = "PASSED" if report.passed else "FAILED"
    console.print()
    console.print(
        Panel(
            f"[bold]Instructions:[/bold] {len(executed)}\n"
            f"[bold]Passed:[/bold]       [green]{passed}[/green]\n"
            f"[bold]Failed:[/bold]       [red]{failed}[/red]\n"
            f"[bold]Duration:[/bold]     {report.duration_seconds:.1f}s",
            title=f"[bold {style}]Run {verdict}[/bold {style}]",
            border_style=style,
        )
    )


# ── CLI command ───────────────────────────────────────────────────────────


def run(
    file: Path | None = typer.Argument(
        None,
        help="Instruction file. Defaults to instructions_file from .pagescript/config.yaml.",
    ),
    headed: bool = typer.Option(
        False,
        "--headed",
        help="Show the browser window.",
    ),
    viewport: str | None = typer.Option(
        None,
        "--viewport",
        help="Viewport size as WIDTHxHEIGHT (e.g., 1280x720).",
    ),
    browser: str | None = typer.Option(
        None,
        "--browser",
        "-b",
        help=f"Browser engine: {', '.join(SUPPORTED_BROWSERS)}.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON on stdout.",
    ),
    report: Path | None = typer.Option(
        None,
        "--report",
        help="Write a markdown run report to this path.",
    ),
    results: Path | None = typer.Option(
        None,
        "--results",
        help="Write results as JSON to this path.",
    ),
    dir: Path | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="pagescript project directory. Defaults to auto-detected .pagescript/ from cwd.",
    ),
) -> None:
    """Run every instruction in FILE against a fresh browser.

    \b
    Examples:
      pagescript run                          # instructions.txt from config
      pagescript run login.txt --headed       # watch it happen
      pagescript run flow.txt --json          # machine-readable results
    """
    project_dir = resolve_project_dir(dir)
    try:
        config = load_config(project_dir)
    except PageScriptConfigError as exc:
        print_error(escape(str(exc)), "Config Error")
        raise typer.Exit(code=2)

    # CLI options override config file values
    if headed:
        config.headless = False
    if viewport:
        config.viewport = _parse_viewport(viewport)
    if browser:
        if browser.lower() not in SUPPORTED_BROWSERS:
            print_error(f"Unsupported browser: {escape(browser)}\n\nExpected one of: {', '.join(SUPPORTED_BROWSERS)}")
            raise typer.Exit(code=2)
        config.browser = browser.lower()

    instructions_path = file or config.instructions_file
    if not instructions_path.is_file():
        print_error(
            f"Instruction file not found: {escape(str(instructions_path))}\n\nFix: create it, or run [bold]pagescript init[/bold]",
            "Not Found",
        )
        raise typer.Exit(code=2)

    lines = instructions_path.read_text(encoding="utf-8").splitlines()
    if not json_output:
        console.print(
            f"[bold]Running[/bold] {escape(str(instructions_path))} "
            f"[dim]({config.browser}, {config.viewport[0]}x{config.viewport[1]}, "
            f"{'headless' if config.headless else 'headed'})[/dim]"
        )

    start_time = datetime.now(timezone.utc)
    started = time.monotonic()
    try:
        run_results = asyncio.run(_execute(config, lines))
    except PlaywrightError as exc:
        print_error(
            f"Could not launch {config.browser}: {escape(str(exc))}\n\nFix: [bold]pagescript install[/bold]",
            "Browser Error",
        )
        raise typer.Exit(code=3)

    run_report = RunReport(
        run_id=f"PS-{start_time.strftime('%Y%m%d-%H%M%S')}",
        instructions_file=str(instructions_path),
        browser=config.browser,
        viewport_size=config.viewport,
        start_time=start_time.isoformat(),
        end_time=datetime.now(timezone.utc).isoformat(),
        duration_seconds=time.monotonic() - started,
        results=run_results,
    )

    # Files first, so a rendering problem never loses them
    if results is not None:
        results.parent.mkdir(parents=True, exist_ok=True)
        results.write_text(json.dumps(run_report.to_dict(), indent=2, default=str), encoding="utf-8")
        logger.info("Results written to %s", results)
    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(ReportGenerator().generate(run_report), encoding="utf-8")

    if json_output:
        output_console.print_json(json.dumps(run_report.to_dict(), default=str))
    else:
        _print_results_table(run_results)
        _print_summary(run_report)
        if report is not None:
            console.print(f"[dim]Report written to {escape(str(report))}[/dim]")

    if not run_report.passed:
        raise typer.Exit(code=1)
