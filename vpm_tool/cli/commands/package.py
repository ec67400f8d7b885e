"""Package commands: search, info, install, remove, outdated"""

import click
from rich.panel import Panel
from rich.markup import escape

from ..decorators import with_manager
from ..utils.output import (
    console,
    format_install_result,
    format_remove_result,
    packages_table,
)
from ..utils.progress import ProgressManager
from ...constants import MSG_UPDATE_AVAILABLE


@click.command()
@click.argument('query', required=False, default='')
@click.option('--author', help='Only packages by this author')
@click.option('--pre/--stable', 'include_unstable', default=None,
              help='Consider pre-release versions (default from configuration)')
@with_manager
def search(manager, query, author, include_unstable):
    """Search packages by id, name or description

    Examples:
        # List everything
        vpm-tool search

        # Packages mentioning "shader"
        vpm-tool search shader
    """
    entries = manager.search(query, author=author, include_unstable=include_unstable)
    if not entries:
        console.print("[yellow]No packages found[/yellow]")
        return
    console.print(packages_table(entries, manager.installed_packages()))


@click.command()
@click.argument('package_id')
@click.option('--pre/--stable', 'include_unstable', default=None,
              help='Consider pre-release versions (default from configuration)')
@with_manager
def info(manager, package_id, include_unstable):
    """Show details of a package"""
    entry = manager.get_entry(package_id, include_unstable=include_unstable)
    version = entry.version
    installed = manager.manifest_store.installed_version(package_id)

    lines = [
        f"[bold]Id:[/bold] {entry.package_id}",
        f"[bold]Name:[/bold] {escape(entry.display_name)}",
        f"[bold]Latest:[/bold] {version.version}",
        f"[bold]Installed:[/bold] {installed or '-'}",
        f"[bold]Repository:[/bold] {escape(', '.join(entry.repositories))}",
    ]
    if version.description:
        lines.append(f"[bold]Description:[/bold] {escape(version.description)}")
    if version.author_name:
        lines.append(f"[bold]Author:[/bold] {escape(version.author_name)}")
    if version.unity:
        lines.append(f"[bold]Unity:[/bold] {version.unity}")
    if version.license:
        lines.append(f"[bold]License:[/bold] {escape(version.license)}")
    if version.changelog_url:
        lines.append(f"[bold]Changelog:[/bold] {version.changelog_url}")

    versions = manager.catalog.versions_of(package_id)
    lines.append(f"[bold]Versions:[/bold] {', '.join(versions[:10])}" + (" ..." if len(versions) > 10 else ""))

    dependents = manager.manifest_store.dependents_of(package_id)
    if dependents:
        lines.append(f"[bold]Required by:[/bold] {', '.join(dependents)}")

    console.print(Panel("\n".join(lines), title=f"Package {package_id}", border_style="cyan"))


@click.command()
@click.argument('package_id')
@click.option('--version', 'version', help='Exact version to install (default: latest)')
@click.option('--pre/--stable', 'include_unstable', default=None,
              help='Consider pre-release versions (default from configuration)')
@with_manager
def install(manager, package_id, version, include_unstable):
    """Install or upgrade a package

    Examples:
        vpm-tool install com.vrchat.avatars
        vpm-tool install com.example.tool --version 1.2.0
    """
    entry = manager.get_entry(package_id, version, include_unstable)

    progress = ProgressManager(console)
    with progress.fraction_progress(f"Installing {package_id} {entry.version.version}") as on_progress:
        result = manager.install(entry.version, on_progress=on_progress)

    format_install_result(result)
    if not result.is_success:
        click.get_current_context().exit(1)


@click.command()
@click.argument('package_id')
@with_manager
def remove(manager, package_id):
    """Remove an installed package"""
    result = manager.remove(package_id)
    format_remove_result(result)
    if not result.is_success:
        click.get_current_context().exit(1)


@click.command()
@click.option('--pre/--stable', 'include_unstable', default=None,
              help='Consider pre-release versions (default from configuration)')
@with_manager
def outdated(manager, include_unstable):
    """List installed packages with newer versions available"""
    packages = manager.outdated(include_unstable)
    if not packages:
        console.print("[green]All packages are up to date[/green]")
        return

    for item in packages:
        console.print(MSG_UPDATE_AVAILABLE.format(
            package=item.package_id,
            installed=item.installed,
            latest=item.latest.version
        ))
