"""Command line interface for vpm-tool"""

from .main import cli, main

__all__ = ["cli", "main"]
