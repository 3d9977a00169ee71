"""pagescript init — Initialize a .pagescript/ project directory.

Creates the config template and a sample instruction file next to it.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.tree import Tree

from pagescript.models import DEFAULT_INSTRUCTIONS_FILE

console = Console()

# ── Sample file contents ──────────────────────────────────────────────────

_SAMPLE_CONFIG = """\
# pagescript project configuration

# Instruction file and artifact output (relative to the project root)
instructions_file: instructions.txt
artifacts_dir: artifacts

# Browser: chromium, firefox or webkit
browser: chromium
headless: true
viewport:
  width: 1280
  height: 720

# Timeouts (milliseconds)
navigation_timeout_ms: 60000
action_timeout_ms: 30000
probe_timeout_ms: 300       # per candidate selector
submit_wait_ms: 10000       # navigation wait after a login/signup submit
new_page_settle_ms: 1000    # pause after actions that may open a tab

# Lines starting with this are ignored
comment_marker: "#"

# Secrets referenced from instructions as env:NAME.
# Environment variables and .env take priority over these values.
# secrets:
#   TEST_EMAIL: me@example.com
#   TEST_PASSWORD: change-me
"""

_SAMPLE_INSTRUCTIONS = """\
# pagescript instructions -- one action per line.
# Run `pagescript actions` to see every keyword.

go to example.com
wait for h1
extract text h1
screenshot
click More information
wait 500
screenshot fullPage

# Credentials can come from the environment:
# login env:TEST_EMAIL, env:TEST_PASSWORD
"""

_GITIGNORE_ENTRIES = (".env", "artifacts/")


def init(
    dir: Path = typer.Option(
        Path("."),
        "--dir",
        "-d",
        help="Parent directory for .pagescript/ project. Defaults to current directory.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing .pagescript/ directory.",
    ),
) -> None:
    """Initialize a new pagescript project.

    Creates .pagescript/config.yaml and a sample instructions.txt.
    """
    project_dir = dir.resolve() / ".pagescript"

    if project_dir.exists() and not force:
        console.print(
            Panel(
                f"[yellow]Directory already exists:[/yellow] {escape(str(project_dir))}\n\nUse [bold]--force[/bold] to overwrite.",
                title="Already Initialized",
                border_style="yellow",
            )
        )
        raise typer.Exit(code=2)

    project_dir.mkdir(parents=True, exist_ok=True)
    (project_dir / "config.yaml").write_text(_SAMPLE_CONFIG, encoding="utf-8")

    root = project_dir.parent
    instructions_path = root / DEFAULT_INSTRUCTIONS_FILE
    wrote_instructions = force or not instructions_path.exists()
    if wrote_instructions:
        instructions_path.write_text(_SAMPLE_INSTRUCTIONS, encoding="utf-8")

    # Keep .env secrets and run artifacts out of version control
    gitignore_path = root / ".gitignore"
    existing = gitignore_path.read_text(encoding="utf-8") if gitignore_path.exists() else ""
    missing = [e for e in _GITIGNORE_ENTRIES if e not in existing.splitlines()]
    if missing:
        block = "# pagescript\n" + "\n".join(missing) + "\n"
        gitignore_path.write_text((existing.rstrip("\n") + "\n\n" if existing else "") + block, encoding="utf-8")

    # Display result as a Rich tree
    tree = Tree(f"[bold green]{escape(str(root))}[/bold green]", guide_style="dim")
    tree.add("[blue].pagescript/[/blue]").add("[cyan]config.yaml[/cyan]")
    tree.add(f"[cyan]{DEFAULT_INSTRUCTIONS_FILE}[/cyan]" + ("" if wrote_instructions else " [dim](kept)[/dim]"))

    console.print()
    console.print(Panel(tree, title="[bold green]pagescript Initialized[/bold green]", border_style="green"))
    console.print()
    console.print("[dim]Next steps:[/dim]")
    console.print(f"  1. Edit [cyan]{DEFAULT_INSTRUCTIONS_FILE}[/cyan]")
    console.print("  2. Run [bold]pagescript install[/bold] to set up Playwright")
    console.print("  3. Run [bold]pagescript run[/bold]")
