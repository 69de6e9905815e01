"""List the registered analyses and their options."""

from rich.table import Table

from . import app
from ._common import build_registry, console


@app.command("list-analyses")
def list_analyses():
    """Show every registered analysis with its flag and options."""
    registry = build_registry()

    table = Table(title="Registered Analyses", show_lines=False, pad_edge=True)
    table.add_column("Flag", style="bold cyan")
    table.add_column("Name")
    table.add_column("Description")
    table.add_column("Options", style="dim")

    for item in registry:
        options = ", ".join(
            f"--{opt.flag} ({opt.type.value}, default {opt.default})"
            for opt in item.list_configuration_options()
        )
        table.add_row(item.flag, item.name, item.description, options or "-")

    console.print(table)
