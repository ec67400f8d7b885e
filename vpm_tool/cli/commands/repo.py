"""Repository management commands"""

from pathlib import Path

import click

from ..decorators import with_manager
from ..utils.output import console, format_refresh_result, repositories_table, print_success, print_error
from ...utils.async_utils import run_async


@click.group()
def repo():
    """Manage package repositories

    Repositories are cached as JSON files in the project's repositories
    directory and can be refreshed from their URLs.
    """
    pass


@repo.command(name='list')
@with_manager
def list_repositories(manager):
    """List known repositories"""
    repositories = manager.repositories
    if not repositories:
        console.print("[yellow]No repositories. Add one with 'vpm-tool repo add <url>'[/yellow]")
        return
    console.print(repositories_table(repositories))


@repo.command()
@click.argument('url')
@with_manager
def add(manager, url):
    """Add a repository from its URL

    Examples:
        vpm-tool repo add https://vpm.example.com/index.json
    """
    repository = manager.add_repository(url)
    if repository is None:
        console.print(f"[yellow]Repository at {url} is already known, not adding duplicate[/yellow]")
        return
    print_success(f"Added repository '{repository.display_name}' ({repository.package_count} packages)")


@repo.command()
@click.argument('key')
@with_manager
def remove(manager, key):
    """Remove a repository by name, id or URL"""
    if not manager.remove_repository(key):
        print_error(f"Repository not found: {key}")
        click.get_current_context().exit(1)
    print_success(f"Removed repository {key}")


@repo.command()
@with_manager
def refresh(manager):
    """Re-download every repository that has a URL

    A repository that fails to download keeps its cached copy.
    """
    result = run_async(manager.refresh_async())
    format_refresh_result(result)


@repo.command(name='import')
@click.option('--from', 'directory', type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Directory of VCC/ALCOM repository files (auto-detected by default)')
@with_manager
def import_(manager, directory):
    """Import repositories known to VRChat Creator Companion or ALCOM"""
    if directory is None and manager.repository_store.find_external_repositories_dir() is None:
        print_error("No VCC/ALCOM repositories directory found; use --from")
        click.get_current_context().exit(1)

    count = manager.import_external(directory)
    print_success(f"Imported {count} repositories")
