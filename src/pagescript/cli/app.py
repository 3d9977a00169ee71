"""pagescript CLI — Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import typer
from rich.console import Console

from pagescript import __version__

TAGLINE = "Plain-text instructions for a live browser."

console = Console()

# ── Version callback ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold cyan]pagescript[/bold cyan] v{__version__}")
        console.print(f"  {TAGLINE}", style="dim")
        raise typer.Exit()


# ── Main app ──────────────────────────────────────────────────────────────

app = typer.Typer(
    name="pagescript",
    help=f"pagescript -- {TAGLINE}",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show pagescript version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (DEBUG logging).",
    ),
) -> None:
    """pagescript -- drive a browser from a file of plain-English instructions.

    One instruction per line. Failures are reported, never fatal.
    """
    if verbose:
        import logging

        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────
# Each subcommand is a separate module to keep this file lean.

from pagescript.cli.actions_cmd import actions  # noqa: E402
from pagescript.cli.init_cmd import init  # noqa: E402
from pagescript.cli.install import install  # noqa: E402
from pagescript.cli.run import run  # noqa: E402
from pagescript.cli.validate import validate  # noqa: E402

app.command(name="run", help="Run an instruction file in a browser.")(run)
app.command(name="validate", help="Parse an instruction file without a browser.")(validate)
app.command(name="actions", help="List the instruction vocabulary.")(actions)
app.command(name="init", help="Initialize a .pagescript/ project directory.")(init)
app.command(name="install", help="Install browser dependencies (Playwright).")(install)
