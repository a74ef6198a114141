"""Shared test fixtures for promote_tool tests."""

from datetime import timedelta
from typing import List, Optional

import pytest
import yaml

from promote_tool.core.ledger import VersionLedger
from promote_tool.core.locks import EnvironmentLockManager
from promote_tool.core.policy import ApprovalVerifier, PromotionPolicy
from promote_tool.core.verification import VerificationRunner
from promote_tool.executors.base import DeployExecutor
from promote_tool.models import (
    CheckResult,
    Config,
    EnvironmentConfig,
    ExecutionOutcome,
    PromotionEdge,
    Release,
    TransitionKind,
    Version,
)
from promote_tool.probes.base import HealthProbe
from promote_tool.services import PromotionService, RollbackService
from promote_tool.utils.time_utils import utcnow

ENVIRONMENTS = ["development", "staging", "production"]
APPROVAL_SECRET = "test-secret"


class FakeExecutor(DeployExecutor):
    """Deploy executor that records calls and returns canned outcomes"""

    def __init__(self, outcome: Optional[ExecutionOutcome] = None,
                 undo_outcome: Optional[ExecutionOutcome] = None):
        super().__init__()
        self.outcome = outcome or ExecutionOutcome.succeeded("deployed")
        self.undo_outcome = undo_outcome
        self.deploys: List[tuple] = []
        self.undos: List[str] = []

    def deploy(self, environment, version, timeout):
        self.deploys.append((environment, version))
        return self.outcome

    def undo(self, environment, timeout):
        self.undos.append(environment)
        if self.undo_outcome is None:
            return super().undo(environment, timeout)
        return self.undo_outcome


class FakeProbe(HealthProbe):
    """Probe whose health is set by the test"""

    def __init__(self, name: str = "smoke", healthy: bool = True, detail: str = ""):
        super().__init__(name)
        self.healthy = healthy
        self.detail = detail
        self.calls = 0

    def check(self, environment, timeout):
        self.calls += 1
        return [CheckResult(self.name, self.healthy, self.detail)]


class Clock:
    """Current time shifted by an adjustable offset"""

    def __init__(self):
        self.offset = timedelta()

    def advance(self, **kwargs):
        self.offset += timedelta(**kwargs)

    def __call__(self):
        return utcnow() + self.offset


def make_config(**overrides) -> Config:
    """development -> staging -> production, gated into production"""
    data = dict(
        project_name="shop-infra",
        environments={name: EnvironmentConfig(name=name) for name in ENVIRONMENTS},
        promotions=[
            PromotionEdge(source="development", target="staging"),
            PromotionEdge(source="staging", target="production",
                          soak_time=3600, requires_approval=True),
        ],
        approval_secret=APPROVAL_SECRET,
    )
    data.update(overrides)
    return Config(**data)


def seed(ledger: VersionLedger, environment: str, *versions: str) -> None:
    """Record releases as needed and move environment through versions in order"""
    for value in versions:
        version = Version.parse(value)
        if ledger.get_release(version) is None:
            ledger.record_release(Release.create(value))
        ledger.update_environment_state(environment, version, "seed", TransitionKind.DEPLOY)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def ledger(tmp_path, config):
    return VersionLedger(tmp_path / "infrastructure-version.json", list(config.environments))


@pytest.fixture
def locks(tmp_path):
    return EnvironmentLockManager(tmp_path / "state" / "locks")


@pytest.fixture
def executors():
    return {name: FakeExecutor() for name in ENVIRONMENTS}


@pytest.fixture
def probes():
    return {name: FakeProbe() for name in ENVIRONMENTS}


@pytest.fixture
def verifier(probes):
    return VerificationRunner({name: [probe] for name, probe in probes.items()})


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def approvals():
    return ApprovalVerifier(APPROVAL_SECRET)


@pytest.fixture
def policy(config, approvals):
    return PromotionPolicy(config.promotions, approvals)


@pytest.fixture
def promotion_service(config, ledger, locks, executors, verifier, policy, clock):
    return PromotionService(config, ledger, locks, executors, verifier, policy, clock=clock)


@pytest.fixture
def rollback_service(config, ledger, locks, executors, verifier, clock):
    return RollbackService(config, ledger, locks, executors, verifier, clock=clock)


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Project directory with a .promote-tool.yaml using noop deploys"""
    project = tmp_path / "project"
    project.mkdir()
    data = make_config().to_dict()
    (project / ".promote-tool.yaml").write_text(
        yaml.dump(data, default_flow_style=False, sort_keys=False), encoding="utf-8"
    )
    monkeypatch.chdir(project)
    monkeypatch.delenv("PROMOTE_TOOL_CONFIG", raising=False)
    monkeypatch.delenv("PROMOTE_TOOL_APPROVAL_SECRET", raising=False)
    monkeypatch.setenv("PROMOTE_TOOL_ACTOR", "tester")
    return project
