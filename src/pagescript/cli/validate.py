"""pagescript validate — Parse an instruction file without launching a browser.

Every line is run through the parser against the built-in vocabulary.
Unknown actions and missing parameters are reported with their line numbers.
Use this to catch typos before a real run.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pagescript.cli.run import load_config, print_error, resolve_project_dir
from pagescript.config import PageScriptConfigError
from pagescript.engine.parser import InstructionParser, ParseFailure

console = Console(stderr=True)


def validate_lines(lines: list[str], parser: InstructionParser) -> list[tuple[int, str, str]]:
    """Return ``(line_number, instruction, reason)`` for every line that fails to parse."""
    failures: list[tuple[int, str, str]] = []
    for number, line in enumerate(lines, start=1):
        result = parser.parse(line)
        if isinstance(result, ParseFailure):
            failures.append((number, line.strip(), result.reason))
    return failures


def validate(
    file: Path | None = typer.Argument(
        None,
        help="Instruction file. Defaults to instructions_file from .pagescript/config.yaml.",
    ),
    dir: Path | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="pagescript project directory. Defaults to auto-detected .pagescript/ from cwd.",
    ),
) -> None:
    """Validate an instruction file without executing it.

    \b
    Examples:
      pagescript validate                     # instructions.txt from config
      pagescript validate login.txt
    """
    try:
        config = load_config(resolve_project_dir(dir))
    except PageScriptConfigError as exc:
        print_error(escape(str(exc)), "Config Error")
        raise typer.Exit(code=2)

    path = file or config.instructions_file
    if not path.is_file():
        print_error(f"Instruction file not found: {escape(str(path))}", "Not Found")
        raise typer.Exit(code=2)

    lines = path.read_text(encoding="utf-8").splitlines()
    parser = InstructionParser(comment_marker=config.comment_marker)
    failures = validate_lines(lines, parser)
    instruction_count = sum(1 for line in lines if not parser.is_ignorable(line))

    if not failures:
        console.print(
            Panel(
                f"[green]{instruction_count} instruction(s) parsed cleanly.[/green]",
                title=f"[bold green]{escape(str(path))}[/bold green]",
                border_style="green",
            )
        )
        return

    table = Table(title=f"{escape(str(path))}: {len(failures)} problem(s)")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Instruction", style="bold")
    table.add_column("Problem", style="red")
    for number, instruction, reason in failures:
        table.add_row(str(number), escape(instruction), escape(reason))
    console.print(table)
    raise typer.Exit(code=1)
