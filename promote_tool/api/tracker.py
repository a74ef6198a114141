"""Tracker API for promotion and rollback operations"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.locks import LockInfo
from ..models import (
    EnvironmentState,
    PromotionResult,
    Release,
    RollbackResult,
    TransitionOutcome,
    TransitionRecord,
    Version,
)
from ..services.workspace import Workspace
from .exceptions import UnknownEnvironmentError


@dataclass
class EnvironmentStatus:
    """Everything `status` reports about one environment"""
    name: str
    state: Optional[EnvironmentState] = None
    lock: Optional[LockInfo] = None
    last_attempt: Optional[TransitionRecord] = None

    @property
    def current_version(self):
        return self.state.current_version if self.state else None

    @property
    def last_attempt_failed(self) -> bool:
        return self.last_attempt is not None and self.last_attempt.outcome in (
            TransitionOutcome.FAILED, TransitionOutcome.ROLLED_BACK
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'environment': self.name,
            'current_version': str(self.current_version) if self.current_version else None,
            'updated_at': self.state.updated_at.isoformat() if self.state else None,
            'history': [str(v) for v in self.state.history] if self.state else [],
            'locked': self.lock is not None,
        }
        if self.lock:
            data['lock_holder'] = self.lock.describe()
        if self.last_attempt:
            data['last_attempt'] = self.last_attempt.to_dict()
        return data


class Tracker:
    """Programmatic entry point mirroring the CLI commands"""

    def __init__(self, workspace: Optional[Workspace] = None, config_path: Optional[Path] = None):
        """
        Initialize tracker

        Args:
            workspace: Prepared workspace (loaded from config_path when omitted)
            config_path: Path to .promote-tool.yaml
        """
        self.workspace = workspace or Workspace.load(config_path)

    @property
    def ledger(self):
        return self.workspace.ledger

    def promote(self, source: str, target: str,
                approval_token: Optional[str] = None,
                actor: Optional[str] = None) -> PromotionResult:
        return self.workspace.promotion_service().promote(source, target, approval_token, actor)

    def deploy(self, environment: str, version, actor: Optional[str] = None) -> PromotionResult:
        return self.workspace.promotion_service().deploy(environment, version, actor)

    def rollback(self, environment: str, target_version=None,
                 actor: Optional[str] = None) -> RollbackResult:
        return self.workspace.rollback_service().rollback(environment, target_version, actor)

    def add_release(self, version, components: Optional[Dict[str, str]] = None,
                    changelog: str = "") -> Release:
        """Record a new release

        Raises:
            ValidationError: If a version string is malformed
            DuplicateVersionError: If the version was already recorded
        """
        release = Release.create(version, components, changelog)
        self.ledger.record_release(release)
        return release

    def issue_approval(self, target: str, version) -> str:
        """Approval token for promoting version into target

        Raises:
            ValueError: If no approval secret is configured
        """
        return self.workspace.approvals.issue(target, Version.parse(version))

    def status(self, environment: str) -> EnvironmentStatus:
        """
        Raises:
            UnknownEnvironmentError: If the environment is not configured
        """
        if environment not in self.workspace.config.environments:
            raise UnknownEnvironmentError(environment)
        attempts = self.ledger.list_transitions(environment, limit=1)
        return EnvironmentStatus(
            name=environment,
            state=self.ledger.get_environment_state(environment),
            lock=self.workspace.locks.holder(environment),
            last_attempt=attempts[0] if attempts else None,
        )

    def status_all(self) -> List[EnvironmentStatus]:
        return [self.status(name) for name in self.workspace.config.environments]

    def history(self, environment: Optional[str] = None,
                limit: Optional[int] = None) -> List[TransitionRecord]:
        if environment is not None and environment not in self.workspace.config.environments:
            raise UnknownEnvironmentError(environment)
        return self.ledger.list_transitions(environment, limit)


def promote(source: str, target: str, approval_token: Optional[str] = None,
            config_path: Optional[Path] = None) -> PromotionResult:
    """Promote source's current version to target using the project config"""
    return Tracker(config_path=config_path).promote(source, target, approval_token)


def rollback(environment: str, target_version=None,
             config_path: Optional[Path] = None) -> RollbackResult:
    """Roll environment back using the project config"""
    return Tracker(config_path=config_path).rollback(environment, target_version)


def status(environment: str, config_path: Optional[Path] = None) -> EnvironmentStatus:
    """Current status of environment using the project config"""
    return Tracker(config_path=config_path).status(environment)
