# promote_tool/models/__init__.py
"""Data models for promote-tool"""

from .version import Version
from .release import Release, ComponentVersionSet
from .environment import EnvironmentState, PromotionEdge
from .transition import TransitionRecord, TransitionKind, TransitionOutcome
from .result import (
    TransitionStatus,
    FailedStep,
    DenialReason,
    PolicyDecision,
    ExecutionStatus,
    ExecutionOutcome,
    CheckResult,
    VerificationResult,
    ErrorDetail,
    TransitionResult,
    PromotionResult,
    RollbackResult,
)
from .config import Config, EnvironmentConfig, ExecutorConfig, ProbeConfig, LedgerConfig

__all__ = [
    # Value types
    "Version",
    "Release",
    "ComponentVersionSet",

    # Ledger models
    "EnvironmentState",
    "PromotionEdge",
    "TransitionRecord",
    "TransitionKind",
    "TransitionOutcome",

    # Result models
    "TransitionStatus",
    "FailedStep",
    "DenialReason",
    "PolicyDecision",
    "ExecutionStatus",
    "ExecutionOutcome",
    "CheckResult",
    "VerificationResult",
    "ErrorDetail",
    "TransitionResult",
    "PromotionResult",
    "RollbackResult",

    # Config models
    "Config",
    "EnvironmentConfig",
    "ExecutorConfig",
    "ProbeConfig",
    "LedgerConfig",
]
