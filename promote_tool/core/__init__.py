"""Core functionality for promote-tool"""

from .ledger import VersionLedger, LedgerSnapshot
from .locks import EnvironmentLockManager, LockInfo
from .policy import PromotionPolicy, ApprovalVerifier
from .verification import VerificationRunner

__all__ = [
    "VersionLedger",
    "LedgerSnapshot",
    "EnvironmentLockManager",
    "LockInfo",
    "PromotionPolicy",
    "ApprovalVerifier",
    "VerificationRunner",
]
