"""pagescript actions — Print the instruction vocabulary."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pagescript.engine.registry import default_registry

console = Console()


def actions() -> None:
    """List every instruction keyword with its usage."""
    table = Table(title="pagescript instructions")
    table.add_column("Action", style="cyan")
    table.add_column("Usage", style="bold")
    table.add_column("Also accepts", style="dim")
    table.add_column("Description")

    for descriptor in default_registry().descriptors():
        aliases = ", ".join(" ".join(a) for a in descriptor.aliases)
        table.add_row(descriptor.key, escape(descriptor.usage), aliases, escape(descriptor.description))

    console.print(table)
    console.print("[dim]Targets may be a CSS selector or a short description like 'search' or 'Sign in'.[/dim]")
    console.print("[dim]Credentials may be written as env:NAME to read them from the environment.[/dim]")
