"""CLI utilities"""

from .output import (
    console,
    print_error,
    print_warning,
    exit_code_for,
    fail,
    format_transition_result,
    format_status,
    format_releases,
    format_release,
    format_history,
)

__all__ = [
    "console",
    "print_error",
    "print_warning",
    "exit_code_for",
    "fail",
    "format_transition_result",
    "format_status",
    "format_releases",
    "format_release",
    "format_history",
]
