# vpm_tool/cli/commands/__init__.py
"""CLI commands"""

from . import repo
from . import package
from . import manifest
from . import history
from . import config

__all__ = [
    "repo",
    "package",
    "manifest",
    "history",
    "config",
]
