"""Public API for promote-tool"""

from .exceptions import (
    PromoteToolError,
    ConfigError,
    ProjectNotFoundError,
    ValidationError,
    LedgerError,
    UnknownEnvironmentError,
    UnknownVersionError,
    DuplicateVersionError,
    LedgerInconsistencyError,
    LedgerCorruptError,
    TransitionError,
    TransitionInProgressError,
    NoPriorVersionError,
)

__all__ = [
    "PromoteToolError",
    "ConfigError",
    "ProjectNotFoundError",
    "ValidationError",
    "LedgerError",
    "UnknownEnvironmentError",
    "UnknownVersionError",
    "DuplicateVersionError",
    "LedgerInconsistencyError",
    "LedgerCorruptError",
    "TransitionError",
    "TransitionInProgressError",
    "NoPriorVersionError",
]
