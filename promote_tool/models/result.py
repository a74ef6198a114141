"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .transition import TransitionRecord
from .version import Version
from ..constants import ExitCode
from ..utils.time_utils import utcnow


class TransitionStatus(Enum):
    """Promotion/rollback state machine states"""
    REQUESTED = "requested"
    POLICY_CHECKED = "policy_checked"
    DEPLOYING = "deploying"
    VERIFYING = "verifying"
    COMMITTED = "committed"
    REJECTED = "rejected"
    FAILED = "failed"


class FailedStep(Enum):
    """Step of a transition that stopped it"""
    POLICY = "policy"
    PRECONDITION = "precondition"
    LOCK = "lock"
    DEPLOY = "deploy"
    VERIFY = "verify"


class DenialReason(Enum):
    NO_SUCH_EDGE = "NoSuchEdge"
    VERSION_MISMATCH = "VersionMismatch"
    WOULD_DOWNGRADE = "WouldDowngrade"
    CHANGE_NOT_ALLOWED = "ChangeNotAllowed"
    SOAK_TIME_NOT_ELAPSED = "SoakTimeNotElapsed"
    APPROVAL_REQUIRED = "ApprovalRequired"


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of a promotion policy check"""
    allowed: bool
    reason: Optional[DenialReason] = None
    message: str = ""

    @classmethod
    def allow(cls) -> 'PolicyDecision':
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenialReason, message: str) -> 'PolicyDecision':
        return cls(allowed=False, reason=reason, message=message)

    def __bool__(self) -> bool:
        return self.allowed


class ExecutionStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Outcome of an external deploy or undo operation"""
    status: ExecutionStatus
    detail: str = ""
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == ExecutionStatus.SUCCEEDED

    @classmethod
    def succeeded(cls, detail: str = "", duration: float = 0.0) -> 'ExecutionOutcome':
        return cls(ExecutionStatus.SUCCEEDED, detail, duration)

    @classmethod
    def failed(cls, detail: str, duration: float = 0.0) -> 'ExecutionOutcome':
        return cls(ExecutionStatus.FAILED, detail, duration)

    @classmethod
    def timed_out(cls, detail: str, duration: float = 0.0) -> 'ExecutionOutcome':
        return cls(ExecutionStatus.TIMED_OUT, detail, duration)

    @classmethod
    def unsupported(cls, detail: str = "") -> 'ExecutionOutcome':
        return cls(ExecutionStatus.UNSUPPORTED, detail)


@dataclass(frozen=True)
class CheckResult:
    """One named health check reported by a probe"""
    name: str
    healthy: bool
    detail: str = ""


@dataclass
class VerificationResult:
    """Reduced outcome of all probes for an environment"""
    environment: str
    healthy: bool
    checks: List[CheckResult] = field(default_factory=list)
    failed_check: Optional[CheckResult] = None

    @property
    def failed_probe(self) -> Optional[str]:
        return self.failed_check.name if self.failed_check else None

    @property
    def detail(self) -> str:
        if self.failed_check is None:
            return ""
        if self.failed_check.detail:
            return f"{self.failed_check.name}: {self.failed_check.detail}"
        return self.failed_check.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            'environment': self.environment,
            'healthy': self.healthy,
            'failed_probe': self.failed_probe,
            'checks': [
                {'name': c.name, 'healthy': c.healthy, 'detail': c.detail}
                for c in self.checks
            ],
        }


@dataclass
class ErrorDetail:
    """Detailed error information"""

    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class TransitionResult:
    """Base result of a promotion, deploy or rollback attempt"""

    environment: str
    status: TransitionStatus = TransitionStatus.REQUESTED
    from_version: Optional[Version] = None
    to_version: Optional[Version] = None
    failed_step: Optional[FailedStep] = None
    decision: Optional[PolicyDecision] = None
    deploy_outcome: Optional[ExecutionOutcome] = None
    undo_outcome: Optional[ExecutionOutcome] = None
    verification: Optional[VerificationResult] = None
    requires_manual_rollback: bool = False
    record: Optional[TransitionRecord] = None
    errors: List[ErrorDetail] = field(default_factory=list)
    start_time: datetime = field(default_factory=utcnow)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        """Check if the transition was committed"""
        return self.status == TransitionStatus.COMMITTED

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    @property
    def error(self) -> Optional[str]:
        return self.errors[-1].message if self.errors else None

    @property
    def exit_code(self) -> ExitCode:
        """Process exit code for this result"""
        if self.status == TransitionStatus.COMMITTED:
            return ExitCode.COMMITTED
        if self.failed_step == FailedStep.POLICY:
            return ExitCode.POLICY_DENIED
        if self.failed_step == FailedStep.PRECONDITION:
            return ExitCode.PRECONDITION_FAILED
        if self.failed_step == FailedStep.LOCK:
            return ExitCode.LOCK_HELD
        if self.failed_step == FailedStep.DEPLOY:
            return ExitCode.DEPLOY_FAILED
        if self.failed_step == FailedStep.VERIFY:
            if self.requires_manual_rollback:
                return ExitCode.MANUAL_ROLLBACK_REQUIRED
            return ExitCode.VERIFICATION_FAILED
        return ExitCode.ERROR

    def add_error(self, code: str, message: str, **context) -> None:
        """Add an error"""
        self.errors.append(ErrorDetail(code=code, message=message, context=context))

    def advance(self, status: TransitionStatus) -> None:
        self.status = status

    def reject(self, step: FailedStep, code: str, message: str, **context) -> None:
        """Stop before any external call was made"""
        self.failed_step = step
        self.add_error(code, message, **context)
        self.complete(TransitionStatus.REJECTED)

    def fail(self, step: FailedStep, code: str, message: str, **context) -> None:
        self.failed_step = step
        self.add_error(code, message, **context)
        self.complete(TransitionStatus.FAILED)

    def complete(self, status: Optional[TransitionStatus] = None) -> None:
        """Mark operation as complete"""
        self.end_time = utcnow()
        if status:
            self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "environment": self.environment,
            "status": self.status.value,
            "from_version": str(self.from_version) if self.from_version else None,
            "to_version": str(self.to_version) if self.to_version else None,
            "exit_code": int(self.exit_code),
            "duration": self.duration,
        }
        if self.failed_step:
            data["failed_step"] = self.failed_step.value
        if self.decision and not self.decision.allowed:
            data["denied"] = {
                "reason": self.decision.reason.value,
                "message": self.decision.message,
            }
        if self.deploy_outcome:
            data["deploy"] = {
                "status": self.deploy_outcome.status.value,
                "detail": self.deploy_outcome.detail,
            }
        if self.verification:
            data["verification"] = self.verification.to_dict()
        if self.undo_outcome:
            data["undo"] = {
                "status": self.undo_outcome.status.value,
                "detail": self.undo_outcome.detail,
            }
        if self.requires_manual_rollback:
            data["requires_manual_rollback"] = True
        if self.record:
            data["record_id"] = self.record.id
        if self.errors:
            data["errors"] = [e.to_dict() for e in self.errors]
        return data


@dataclass
class PromotionResult(TransitionResult):
    """Result of promote or direct deploy"""

    source_env: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["source_env"] = self.source_env
        return data


@dataclass
class RollbackResult(TransitionResult):
    """Result of rollback"""

    snapshot_record: Optional[TransitionRecord] = None
    target_resolved: bool = False  # target picked from history

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["target_resolved"] = self.target_resolved
        if self.snapshot_record:
            data["snapshot_record_id"] = self.snapshot_record.id
        return data
