"""Tests for promote_tool.services.rollback_service."""

import pytest

from promote_tool.api.exceptions import NoPriorVersionError
from promote_tool.constants import ErrorCode, ExitCode
from promote_tool.models import (
    ExecutionOutcome,
    FailedStep,
    Release,
    TransitionKind,
    TransitionOutcome,
    TransitionStatus,
    Version,
)
from promote_tool.services import RollbackService

from .conftest import seed


@pytest.fixture
def production(ledger):
    """production moved 1.9.0 -> 2.0.0"""
    seed(ledger, "production", "1.9.0", "2.0.0")
    return ledger


def codes(result):
    return [e.code for e in result.errors]


class TestResolveTarget:
    """RollbackService.resolve_target picks from the environment history."""

    def test_most_recent_older(self, production):
        state = production.get_environment_state("production")
        assert RollbackService.resolve_target(state, "production") == Version(1, 9, 0)

    def test_skips_newer_entries(self, ledger):
        seed(ledger, "production", "1.8.0", "2.0.0", "1.9.0")
        state = ledger.get_environment_state("production")
        # history is (1.8.0, 2.0.0); 2.0.0 is newer than what runs now
        assert RollbackService.resolve_target(state, "production") == Version(1, 8, 0)

    def test_nothing_older(self, ledger):
        seed(ledger, "production", "2.0.0")
        with pytest.raises(NoPriorVersionError):
            RollbackService.resolve_target(ledger.get_environment_state("production"), "production")
        with pytest.raises(NoPriorVersionError):
            RollbackService.resolve_target(None, "production")


class TestRollbackSuccess:
    """Rollback deploys, verifies and commits the older version."""

    def test_implicit_target(self, rollback_service, production, executors, probes):
        result = rollback_service.rollback("production", actor="oncall")

        assert result.is_success
        assert result.exit_code == ExitCode.COMMITTED
        assert result.target_resolved
        assert result.from_version == Version(2, 0, 0)
        assert result.to_version == Version(1, 9, 0)
        assert executors["production"].deploys == [("production", Version(1, 9, 0))]
        assert probes["production"].calls == 1
        assert production.get_environment_state("production").current_version == Version(1, 9, 0)

    def test_records_snapshot_then_rollback(self, rollback_service, production):
        result = rollback_service.rollback("production", actor="oncall")

        latest, snapshot = production.list_transitions("production")[:2]
        assert latest.kind == TransitionKind.ROLLBACK
        assert latest.outcome == TransitionOutcome.SUCCEEDED
        assert latest.from_version == Version(2, 0, 0)
        assert latest.actor == "oncall"

        assert snapshot == result.snapshot_record
        assert snapshot.kind == TransitionKind.PRE_ROLLBACK_SNAPSHOT
        assert snapshot.outcome == TransitionOutcome.RECORDED
        assert snapshot.to_version == Version(2, 0, 0)
        assert "1.9.0" in snapshot.detail

    def test_explicit_target_outside_history(self, rollback_service, production):
        production.record_release(Release.create("1.5.0"))

        result = rollback_service.rollback("production", "1.5.0", actor="oncall")

        assert result.is_success
        assert not result.target_resolved
        assert production.get_environment_state("production").current_version == Version(1, 5, 0)

    def test_successive_rollbacks_walk_back(self, rollback_service, ledger):
        seed(ledger, "production", "1.8.0", "1.9.0", "2.0.0")

        assert rollback_service.rollback("production", actor="oncall").to_version == Version(1, 9, 0)
        assert rollback_service.rollback("production", actor="oncall").to_version == Version(1, 8, 0)

    def test_does_not_bounce_forward(self, rollback_service, production):
        rollback_service.rollback("production", actor="oncall")

        result = rollback_service.rollback("production", actor="oncall")

        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        assert codes(result) == [ErrorCode.NO_PRIOR_VERSION]

    def test_lock_released(self, rollback_service, production, locks):
        rollback_service.rollback("production", actor="oncall")
        assert locks.holder("production") is None


class TestRollbackRejected:
    """Bad targets are rejected before anything is deployed or recorded."""

    def test_no_prior_version(self, rollback_service, ledger, executors):
        seed(ledger, "production", "2.0.0")
        before = ledger.list_transitions()

        result = rollback_service.rollback("production", actor="oncall")

        assert result.status == TransitionStatus.REJECTED
        assert result.failed_step == FailedStep.PRECONDITION
        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        assert codes(result) == [ErrorCode.NO_PRIOR_VERSION]
        assert executors["production"].deploys == []
        assert ledger.list_transitions() == before

    def test_nothing_deployed(self, rollback_service, ledger):
        result = rollback_service.rollback("staging", actor="oncall")
        assert codes(result) == [ErrorCode.NO_PRIOR_VERSION]

    def test_explicit_target_with_nothing_deployed(self, rollback_service, ledger):
        ledger.record_release(Release.create("1.0.0"))
        result = rollback_service.rollback("staging", "1.0.0", actor="oncall")
        assert codes(result) == [ErrorCode.NO_PRIOR_VERSION]

    def test_unknown_target(self, rollback_service, production):
        result = rollback_service.rollback("production", "1.5.0", actor="oncall")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        assert codes(result) == [ErrorCode.UNKNOWN_VERSION]

    @pytest.mark.parametrize("target", ["2.0.0", "2.1.0"])
    def test_target_must_be_older(self, rollback_service, production, executors, target):
        production.record_release(Release.create("2.1.0"))

        result = rollback_service.rollback("production", target, actor="oncall")

        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        assert codes(result) == [ErrorCode.ROLLBACK_TARGET_NOT_OLDER]
        assert executors["production"].deploys == []

    def test_unknown_environment(self, rollback_service):
        result = rollback_service.rollback("qa", actor="oncall")
        assert codes(result) == [ErrorCode.UNKNOWN_ENVIRONMENT]

    def test_lock_held(self, rollback_service, production, locks, executors):
        before = production.list_transitions()

        with locks.hold("production", "alice promote staging->production"):
            result = rollback_service.rollback("production", actor="oncall")

        assert result.exit_code == ExitCode.LOCK_HELD
        assert result.snapshot_record is None
        assert executors["production"].deploys == []
        assert production.list_transitions() == before


class TestRollbackFailure:
    """Failures leave the environment on its current version."""

    def test_deploy_failed(self, rollback_service, production, executors):
        executors["production"].outcome = ExecutionOutcome.failed("apply failed")

        result = rollback_service.rollback("production", actor="oncall")

        assert result.exit_code == ExitCode.DEPLOY_FAILED
        assert production.get_environment_state("production").current_version == Version(2, 0, 0)
        latest, snapshot = production.list_transitions("production")[:2]
        assert latest.kind == TransitionKind.ROLLBACK
        assert latest.outcome == TransitionOutcome.FAILED
        assert snapshot.kind == TransitionKind.PRE_ROLLBACK_SNAPSHOT

    def test_verify_failed_requires_manual_rollback(self, rollback_service, production,
                                                    executors, probes):
        executors["production"].undo_outcome = ExecutionOutcome.succeeded()
        probes["production"].healthy = False
        probes["production"].detail = "HTTP 502"

        result = rollback_service.rollback("production", actor="oncall")

        assert result.failed_step == FailedStep.VERIFY
        assert result.requires_manual_rollback
        assert result.exit_code == ExitCode.MANUAL_ROLLBACK_REQUIRED
        # no automatic undo of a rollback
        assert executors["production"].undos == []
        assert result.undo_outcome is None
        assert production.get_environment_state("production").current_version == Version(2, 0, 0)

        latest = production.list_transitions("production")[0]
        assert latest.outcome == TransitionOutcome.FAILED
        assert latest.failed_step == "verify"
        assert "HTTP 502" in latest.detail
