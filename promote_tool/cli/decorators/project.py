"""Project context decorator for CLI commands"""

from functools import wraps
from typing import Callable

import click

from ..utils.output import fail
from ...api.exceptions import PromoteToolError


def require_project(func: Callable) -> Callable:
    """Decorator that loads the project before the command runs

    The loaded Tracker is passed to the command as its first argument
    after the click context. A missing or invalid configuration ends the
    command with an error message and exit code 1.

    Args:
        func: Command function to decorate

    Returns:
        Decorated function
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        try:
            tracker = ctx.obj.tracker
        except PromoteToolError as e:
            fail(ctx, e)
        return func(ctx, tracker, *args[1:], **kwargs)

    return wrapper
