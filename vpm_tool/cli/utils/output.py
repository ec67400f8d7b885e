# vpm_tool/cli/utils/output.py
"""Output formatting utilities"""

from typing import List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box
from rich.markup import escape

from ...constants import EMOJI_ERROR, EMOJI_SUCCESS, EMOJI_WARNING
from ...core.catalog import CatalogEntry
from ...models import InstallResult, RemoveResult, RefreshResult, Repository

console = Console()


def format_install_result(result: InstallResult) -> None:
    """Format and display install operation result"""
    if result.is_success:
        lines = [
            f"[green]{result.message}[/green]",
            "",
            f"[bold]Package:[/bold] {result.package_id}",
            f"[bold]Version:[/bold] {result.version}",
            f"[bold]Path:[/bold] {result.install_path}",
            f"[bold]Files:[/bold] {result.files_written} written, {result.files_removed} removed",
        ]
        if result.base_installed:
            lines.append(f"[bold]Also installed:[/bold] {result.base_installed}")
        if result.duration is not None:
            lines.append(f"[dim]Completed in {result.duration:.2f}s[/dim]")

        console.print(Panel("\n".join(lines), title="Install Result", border_style="green"))
    else:
        lines = [f"[red]{EMOJI_ERROR} Install failed:[/red] {escape(result.error or '')}"]
        if result.failed_state:
            lines.append(f"[dim]Failed while: {result.failed_state.value}[/dim]")
        console.print(Panel("\n".join(lines), title="Install Error", border_style="red"))


def format_remove_result(result: RemoveResult) -> None:
    """Format and display remove operation result"""
    if result.is_success:
        console.print(f"[green]{result.message}[/green]")
        return

    lines = [f"[red]{EMOJI_ERROR} Remove failed:[/red] {escape(result.error or '')}"]
    if result.blocking_dependents:
        lines.append("")
        lines.append("[bold]Required by:[/bold]")
        for dependent in result.blocking_dependents:
            lines.append(f"  • {dependent}")
    console.print(Panel("\n".join(lines), title="Remove Error", border_style="red"))


def format_refresh_result(result: RefreshResult) -> None:
    """Format and display refresh result"""
    style = "green" if result.is_success else "yellow"
    console.print(f"[{style}]{result.message}[/{style}]")
    for warning in result.warnings:
        console.print(f"  [yellow]{EMOJI_WARNING} kept cached copy of {escape(warning)}[/yellow]")
    for name in result.skipped:
        console.print(f"  [dim]{name}: no URL, not refreshed[/dim]")


def repositories_table(repositories: List[Repository]) -> Table:
    """Table of repositories"""
    table = Table(title="Repositories", box=box.ROUNDED)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Id", style="dim")
    table.add_column("Packages", justify="right", style="yellow")
    table.add_column("URL")

    for repository in repositories:
        table.add_row(
            repository.display_name,
            repository.id or "",
            str(repository.package_count),
            repository.url or "[dim]local only[/dim]"
        )
    return table


def packages_table(entries: List[CatalogEntry], installed: dict, title: str = "Packages") -> Table:
    """Table of catalog entries with their installed state"""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Package", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Latest", style="green")
    table.add_column("Installed", style="yellow")
    table.add_column("Repository", style="dim")

    for entry in entries:
        repository = entry.repository.display_name
        if entry.in_multiple_repositories:
            repository += f" (+{len(entry.repositories) - 1})"
        table.add_row(
            entry.package_id,
            entry.display_name,
            entry.version.version,
            installed.get(entry.package_id) or "",
            repository
        )
    return table


def print_success(message: str) -> None:
    console.print(f"[green]{EMOJI_SUCCESS} {escape(message)}[/green]")


def print_error(message: str) -> None:
    console.print(f"[red]{EMOJI_ERROR} {escape(message)}[/red]")
