"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="churn-insight",
    help="Churn Insight - daily inserted and removed lines from git history",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .analyses import list_analyses as _list_analyses  # noqa: F401, E402


def main() -> None:
    app()
