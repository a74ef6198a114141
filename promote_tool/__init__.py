"""Promote Tool - environment version, promotion and rollback tracker.

Keeps a per-environment version ledger, enforces promotion rules between
environments (development -> staging -> production) and rolls environments
back with mandatory post-rollback verification.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Core API
from .api.tracker import Tracker, EnvironmentStatus, promote, rollback, status

# Data models
from .models import (
    Version,
    Release,
    EnvironmentState,
    PromotionEdge,
    TransitionRecord,
    PolicyDecision,
    PromotionResult,
    RollbackResult,
    VerificationResult,
)

# Exceptions
from .api.exceptions import (
    PromoteToolError,
    ConfigError,
    ProjectNotFoundError,
    ValidationError,
    LedgerError,
    UnknownEnvironmentError,
    UnknownVersionError,
    DuplicateVersionError,
    LedgerInconsistencyError,
    TransitionInProgressError,
    NoPriorVersionError,
)

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main classes
    "Tracker",
    "EnvironmentStatus",

    # Core API functions
    "promote",
    "rollback",
    "status",

    # Data models
    "Version",
    "Release",
    "EnvironmentState",
    "PromotionEdge",
    "TransitionRecord",
    "PolicyDecision",
    "PromotionResult",
    "RollbackResult",
    "VerificationResult",

    # Exceptions
    "PromoteToolError",
    "ConfigError",
    "ProjectNotFoundError",
    "ValidationError",
    "LedgerError",
    "UnknownEnvironmentError",
    "UnknownVersionError",
    "DuplicateVersionError",
    "LedgerInconsistencyError",
    "TransitionInProgressError",
    "NoPriorVersionError",
]
