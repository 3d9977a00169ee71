"""pagescript install — Install browser dependencies (Playwright).

Runs `playwright install` with a Rich progress spinner and reports whether
the installation succeeded.
"""

from __future__ import annotations

import subprocess
import sys

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from pagescript.models import SUPPORTED_BROWSERS

console = Console()


def build_install_command(browsers: list[str], with_deps: bool = False) -> list[str]:
    """The ``python -m playwright install`` invocation for the given browsers."""
    cmd = [sys.executable, "-m", "playwright", "install"]
    if with_deps:
        cmd.append("--with-deps")
    return cmd + browsers


def install(
    browsers: str = typer.Option(
        "chromium",
        "--browsers",
        "-b",
        help=f"Browsers to install (comma-separated). Options: {', '.join(SUPPORTED_BROWSERS)}.",
    ),
    with_deps: bool = typer.Option(
        False,
        "--with-deps",
        help="Also install system dependencies (Linux, may need sudo).",
    ),
) -> None:
    """Install the Playwright browsers pagescript drives.

    By default installs Chromium only. Use --browsers to specify others.
    """
    browser_list = [b.strip().lower() for b in browsers.split(",") if b.strip()]
    unknown = [b for b in browser_list if b not in SUPPORTED_BROWSERS]
    if unknown or not browser_list:
        console.print(
            f"[red]Unknown browser(s): {escape(', '.join(unknown)) or '(none)'}[/red] "
            f"-- expected {', '.join(SUPPORTED_BROWSERS)}"
        )
        raise typer.Exit(code=2)

    cmd = build_install_command(browser_list, with_deps)

    try:
        with console.status(
            f"[bold blue]Installing {', '.join(browser_list)}...[/bold blue]",
            spinner="dots",
        ):
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=600)
    except subprocess.TimeoutExpired:
        console.print(
            Panel(
                "[red]Installation timed out after 10 minutes.[/red]\n\nCheck your network connection and try again.",
                title="[red]Timeout[/red]",
                border_style="red",
            )
        )
        raise typer.Exit(code=3)

    if result.returncode != 0:
        console.print(
            Panel(
                f"[red]Playwright install failed (exit code {result.returncode}).[/red]\n\n"
                f"{escape(result.stderr.strip()) if result.stderr else 'No error output.'}\n\n"
                "[dim]Try running manually:[/dim]\n"
                f"  {' '.join(cmd)}",
                title="[red]Installation Failed[/red]",
                border_style="red",
            )
        )
        raise typer.Exit(code=3)

    # Show any output from playwright (often lists installed paths)
    if result.stdout and result.stdout.strip():
        for line in result.stdout.strip().splitlines():
            console.print(f"  [dim]{escape(line)}[/dim]")

    console.print(
        Panel(
            f"[green]Successfully installed: {', '.join(browser_list)}[/green]\n\n"
            "You're ready to run pagescript:\n"
            "  [bold]pagescript run[/bold]",
            title="[bold green]Installation Complete[/bold green]",
            border_style="green",
        )
    )
