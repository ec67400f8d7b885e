"""Package manager context decorator for CLI commands"""

from functools import wraps
from typing import Callable

import click

from ..context import Context
from ..utils.output import console, print_error
from ...api.exceptions import VPMToolError


def with_manager(func: Callable) -> Callable:
    """Decorator that passes the project's PackageManager as first argument

    Errors raised by vpm-tool are printed and turn into exit code 1.

    Args:
        func: Command function to decorate

    Returns:
        Decorated function
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        state = ctx.ensure_object(Context)

        try:
            manager = state.manager
            return func(manager, *args, **kwargs)
        except VPMToolError as e:
            message = f"{e}"
            if e.error_code:
                message += f" ({e.error_code})"
            print_error(message)
            if state.debug:
                console.print_exception()
            ctx.exit(1)

    return wrapper
