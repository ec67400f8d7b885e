"""Configuration commands"""

from pathlib import Path

import click
import yaml
from rich.syntax import Syntax

from ..context import Context
from ..decorators import with_manager
from ..utils.output import console, print_error, print_success
from ...services.config_service import ConfigService
from ...models.config import ToolConfig


@click.group()
def config():
    """Show or create the project configuration (.vpm-tool.yaml)"""
    pass


@config.command()
@with_manager
def show(manager):
    """Show the effective configuration"""
    console.print(f"[dim]{manager.config_service.config_path}[/dim]")
    text = yaml.safe_dump(manager.config.to_dict(), default_flow_style=False, sort_keys=False)
    console.print(Syntax(text, "yaml"))

    console.print(f"[bold]Packages:[/bold] {manager.path_resolver.get_packages_dir()}")
    console.print(f"[bold]Repositories:[/bold] {manager.path_resolver.get_repositories_dir()}")
    console.print(f"[bold]Manifest:[/bold] {manager.path_resolver.get_manifest_path()}")


@config.command()
@click.option('--force', is_flag=True, help='Overwrite an existing configuration file')
@click.pass_context
def init(ctx, force):
    """Write a configuration file with the default settings"""
    state = ctx.ensure_object(Context)
    service = ConfigService(state.project_root or Path.cwd(), state.config_path)

    if service.config_path.exists() and not force:
        print_error(f"{service.config_path} already exists; use --force to overwrite")
        ctx.exit(1)

    path = service.save_config(ToolConfig())
    print_success(f"Configuration written to {path}")
