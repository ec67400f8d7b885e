"""Installation history command"""

import click
from rich.table import Table
from rich import box
from rich.markup import escape

from ..decorators import with_manager
from ..utils.output import console


@click.command()
@click.option('--limit', type=int, default=20, help='Limit number of results')
@with_manager
def history(manager, limit):
    """Show recent install and remove attempts"""
    entries = manager.history(limit)
    if not entries:
        console.print("[yellow]No installation history[/yellow]")
        return

    table = Table(title="Installation History", box=box.ROUNDED)
    table.add_column("Time", style="dim")
    table.add_column("Action")
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Status", style="bold")

    for entry in entries:
        status = "[green]✓[/green]" if entry.success else f"[red]✗[/red] {escape(entry.error or '')}"
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M"),
            entry.action,
            entry.package,
            entry.version or "",
            status
        )

    console.print(table)
