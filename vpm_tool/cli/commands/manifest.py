"""Manifest commands"""

import json

import click
from rich.syntax import Syntax
from rich.table import Table
from rich import box

from ..decorators import with_manager
from ..utils.output import console
from ...constants import MSG_RECONCILE_SUCCESS


@click.group()
def manifest():
    """Inspect and repair vpm-manifest.json"""
    pass


@manifest.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the raw manifest')
@with_manager
def show(manager, as_json):
    """Show installed packages recorded in the manifest"""
    data = manager.manifest_store.read()

    if as_json:
        console.print(Syntax(json.dumps(data.to_dict(), indent=2), "json"))
        return

    if not data.package_ids():
        console.print("[yellow]No packages recorded in the manifest[/yellow]")
        return

    table = Table(title="Installed Packages", box=box.ROUNDED)
    table.add_column("Package", style="cyan", no_wrap=True)
    table.add_column("Version", style="green")
    table.add_column("Dependencies", style="dim")

    for package_id in data.package_ids():
        locked = data.locked.get(package_id)
        dependencies = ", ".join(f"{k} {v}" for k, v in locked.dependencies.items()) if locked else ""
        table.add_row(package_id, data.get_version(package_id) or "", dependencies)

    console.print(table)


@manifest.command()
@with_manager
def reconcile(manager):
    """Update the manifest from packages present on disk"""
    count = manager.reconcile_manifest()
    console.print(f"[green]{MSG_RECONCILE_SUCCESS.format(count=count)}[/green]")
