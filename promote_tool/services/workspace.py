"""Wiring of ledger, locks, collaborators and services for one project"""

from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Optional

from .config_service import ConfigService
from .promotion_service import PromotionService
from .rollback_service import RollbackService
from ..constants import LOCKS_DIR
from ..core.ledger import VersionLedger
from ..core.locks import EnvironmentLockManager
from ..core.policy import ApprovalVerifier, PromotionPolicy
from ..core.verification import VerificationRunner
from ..executors.base import DeployExecutor
from ..executors.factory import ExecutorFactory
from ..models.config import Config
from ..probes.factory import ProbeFactory
from ..utils.time_utils import utcnow


class Workspace:
    """Everything a command needs, built lazily from the project config"""

    def __init__(self, config: Config, project_root: Path, clock: Callable = utcnow):
        """
        Args:
            config: Loaded project configuration
            project_root: Directory that relative config paths are resolved against
            clock: Source of the current time
        """
        self.config = config
        self.project_root = Path(project_root)
        self.clock = clock
        self._ledger: Optional[VersionLedger] = None
        self._locks: Optional[EnvironmentLockManager] = None
        self._executors: Optional[Dict[str, DeployExecutor]] = None
        self._verifier: Optional[VerificationRunner] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Workspace':
        """Discover and load the project configuration

        Raises:
            ProjectNotFoundError: If no configuration is found
            ConfigError: If the configuration is invalid
        """
        service = ConfigService.discover(config_path)
        return cls(service.config, service.project_root)

    def _resolve(self, path: str) -> Path:
        resolved = Path(path).expanduser()
        if not resolved.is_absolute():
            resolved = self.project_root / resolved
        return resolved

    @property
    def ledger_path(self) -> Path:
        return self._resolve(self.config.ledger.path)

    @property
    def state_dir(self) -> Path:
        return self._resolve(self.config.ledger.state_dir)

    @property
    def ledger(self) -> VersionLedger:
        if self._ledger is None:
            self._ledger = VersionLedger(
                self.ledger_path,
                environments=list(self.config.environments),
                history_limit=self.config.ledger.history_limit,
            )
        return self._ledger

    @property
    def locks(self) -> EnvironmentLockManager:
        if self._locks is None:
            self._locks = EnvironmentLockManager(self.state_dir / LOCKS_DIR)
        return self._locks

    @property
    def executors(self) -> Dict[str, DeployExecutor]:
        if self._executors is None:
            self._executors = {}
            for name, env in self.config.environments.items():
                # Commands run from the project root unless told otherwise
                deploy = replace(env.deploy, cwd=str(self._resolve(env.deploy.cwd or ".")))
                self._executors[name] = ExecutorFactory.create_from_config(deploy)
        return self._executors

    @property
    def verifier(self) -> VerificationRunner:
        if self._verifier is None:
            self._verifier = VerificationRunner(
                probes={
                    name: ProbeFactory.create_all(env.probes)
                    for name, env in self.config.environments.items()
                },
                timeouts={
                    name: env.verify_timeout
                    for name, env in self.config.environments.items()
                },
            )
        return self._verifier

    @property
    def approvals(self) -> ApprovalVerifier:
        return ApprovalVerifier(self.config.approval_secret)

    @property
    def policy(self) -> PromotionPolicy:
        return PromotionPolicy(self.config.promotions, self.approvals)

    def promotion_service(self) -> PromotionService:
        return PromotionService(
            self.config, self.ledger, self.locks, self.executors, self.verifier,
            self.policy, clock=self.clock,
        )

    def rollback_service(self) -> RollbackService:
        return RollbackService(
            self.config, self.ledger, self.locks, self.executors, self.verifier,
            clock=self.clock,
        )
