"""CLI utility functions"""

from .output import (
    console,
    format_install_result,
    format_remove_result,
    format_refresh_result,
    repositories_table,
    packages_table,
    print_success,
    print_error,
)
from .progress import ProgressManager

__all__ = [
    # Output utilities
    'console',
    'format_install_result',
    'format_remove_result',
    'format_refresh_result',
    'repositories_table',
    'packages_table',
    'print_success',
    'print_error',

    # Progress utilities
    'ProgressManager',
]
