"""Analyze command: run churn over a repository and print the result."""

import sys
from pathlib import Path
from typing import Optional

import typer

from ..driver import run_churn
from ..exceptions import ChurnInsightError
from ..logging_config import setup_logging
from . import app
from ._common import build_registry, console, resolve_config


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the git repository",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    people: Optional[bool] = typer.Option(
        None,
        "--people/--no-people",
        help="Record a separate series per author",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format: text or binary",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the result to this file instead of stdout",
    ),
    max_commits: Optional[int] = typer.Option(
        None,
        "--max-commits",
        help="Analyze at most this many commits (0 = unlimited)",
        min=0,
    ),
    first_parent: Optional[bool] = typer.Option(
        None,
        "--first-parent/--all-parents",
        help="Follow only the first parent of merge commits",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML config file",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
):
    """
    Collect the daily numbers of inserted and removed lines.

    [bold cyan]Examples:[/bold cyan]

      churn-insight analyze .

      churn-insight analyze ~/src/project --people

      churn-insight analyze . --format binary -o churn.bin
    """
    setup_logging("verbose" if verbose else "quiet" if quiet else "normal")

    try:
        settings = resolve_config(
            config=config,
            track_people=people,
            output_format=output_format,
            max_commits=max_commits,
            first_parent=first_parent,
            verbose=verbose,
            quiet=quiet,
        )
        setup_logging(settings.verbosity)
        run = run_churn(str(path), settings, registry=build_registry())
    except ChurnInsightError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    binary = settings.output_format == "binary"
    if output is not None:
        if binary:
            output.write_bytes(run.analysis.serialize(run.result, True))
        else:
            output.write_text(run.analysis.serialize(run.result, False), encoding="utf-8")
        console.print(
            f"[green]Wrote {settings.output_format} churn for "
            f"{run.consumed} commits to {output}[/green]"
        )
    elif binary:
        run.analysis.serialize(run.result, True, sys.stdout.buffer)
        sys.stdout.buffer.flush()
    else:
        run.analysis.serialize(run.result, False, sys.stdout)
