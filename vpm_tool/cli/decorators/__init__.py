# vpm_tool/cli/decorators/__init__.py
"""CLI decorators"""

from .manager import with_manager

__all__ = [
    'with_manager',
]
