# vpm_tool/cli/main.py
"""Main CLI entry point for vpm-tool"""

import os
import sys
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from ..constants import APP_NAME, LOG_FORMAT, ENV_LOG_LEVEL
from ..__version__ import __version__
from .context import Context

# Import all commands
from .commands import (
    repo,
    package,
    manifest,
    history,
    config,
)

console = Console()


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    The level comes from the flags first, then from ``VPM_TOOL_LOG_LEVEL``,
    and defaults to WARNING.

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.getLevelName(os.environ.get(ENV_LOG_LEVEL, "WARNING").upper())
        if not isinstance(level, int):
            level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ],
        force=True
    )

    # Adjust third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiofiles").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@click.group(name=APP_NAME)
@click.version_option(__version__, prog_name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.option('-C', '--project-root', type=click.Path(file_okay=False, path_type=Path),
              help='Unity project directory (default: current directory)')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Configuration file (default: .vpm-tool.yaml in the project)')
@click.pass_context
def cli(ctx, verbose, debug, quiet, project_root, config_path):
    """VPM Tool - Manage VPM packages in a Unity project

    Keeps a local cache of VPM repository listings, searches their
    packages, and installs or removes packages while keeping
    Packages/vpm-manifest.json in sync.
    """
    # Setup logging
    if quiet:
        logging.disable(logging.WARNING)
    else:
        logging.disable(logging.NOTSET)
        setup_logging(verbose=verbose, debug=debug)

    # Tests may pre-populate the context (e.g. with a mock transport)
    state = ctx.ensure_object(Context)
    state.verbose = verbose
    state.debug = debug
    if project_root is not None:
        state.project_root = project_root
    if config_path is not None:
        state.config_path = config_path


# Register commands
cli.add_command(repo.repo)
cli.add_command(package.search)
cli.add_command(package.info)
cli.add_command(package.install)
cli.add_command(package.remove)
cli.add_command(package.outdated)
cli.add_command(manifest.manifest)
cli.add_command(history.history)
cli.add_command(config.config)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
