"""Rollback service implementation"""

import logging
from typing import Optional

from ..api.exceptions import (
    NoPriorVersionError,
    UnknownEnvironmentError,
    UnknownVersionError,
    ValidationError,
)
from ..constants import ErrorCode
from ..models import (
    EnvironmentState,
    FailedStep,
    RollbackResult,
    TransitionKind,
    TransitionOutcome,
    TransitionRecord,
    Version,
)
from .base import TransitionService, default_actor

logger = logging.getLogger(__name__)


class RollbackService(TransitionService):
    """Moves an environment back to an older recorded version

    A rollback is not subject to promotion policy, but it is locked,
    deployed and verified exactly like a promotion. Before anything is
    deployed a pre-rollback snapshot record captures the version being
    rolled back from. Verification is mandatory; when it fails there is
    no automatic undo and the result asks for manual intervention.
    """

    @staticmethod
    def resolve_target(state: Optional[EnvironmentState], environment: str) -> Version:
        """Most recent prior version strictly older than the current one

        Raises:
            NoPriorVersionError: If the history holds no older version
        """
        if state is None:
            raise NoPriorVersionError(environment)
        for version in reversed(state.history):
            if version < state.current_version:
                return version
        raise NoPriorVersionError(environment)

    def _check_target(self, result: RollbackResult, target_version) -> bool:
        """Fill in from/to versions, rejecting the result on a bad target"""
        environment = result.environment
        try:
            state = self.ledger.get_environment_state(environment)
            if target_version is None:
                version = self.resolve_target(state, environment)
                result.target_resolved = True
            else:
                version = Version.parse(target_version)
                if self.ledger.get_release(version) is None:
                    raise UnknownVersionError(version)
        except (UnknownEnvironmentError, UnknownVersionError,
                NoPriorVersionError, ValidationError) as e:
            result.reject(FailedStep.PRECONDITION, e.error_code, str(e))
            return False

        result.to_version = version
        result.from_version = state.current_version if state else None

        if result.from_version is None:
            result.reject(FailedStep.PRECONDITION, ErrorCode.NO_PRIOR_VERSION,
                          f"Nothing is deployed to {environment}")
            return False
        if not version < result.from_version:
            result.reject(
                FailedStep.PRECONDITION, ErrorCode.ROLLBACK_TARGET_NOT_OLDER,
                f"{environment} runs {result.from_version}; rollback target {version} "
                "must be older (use promote or deploy to move forward)"
            )
            return False
        return True

    def rollback(self,
                 environment: str,
                 target_version=None,
                 actor: Optional[str] = None) -> RollbackResult:
        """Roll environment back to target_version

        Args:
            environment: Environment name
            target_version: Version to return to; the most recent older
                version from the environment's history when omitted
            actor: Who requested the rollback

        Returns:
            RollbackResult
        """
        actor = actor or default_actor()
        result = RollbackResult(environment=environment)

        if not self._check_target(result, target_version):
            return result

        if not self._acquire(result, environment, f"{actor} rollback"):
            return result

        try:
            # Re-resolve under the lock; the environment may have moved
            if not self._check_target(result, target_version):
                return result

            result.snapshot_record = self.ledger.append_transition(TransitionRecord(
                kind=TransitionKind.PRE_ROLLBACK_SNAPSHOT,
                target_env=environment,
                from_version=result.from_version,
                to_version=result.from_version,
                outcome=TransitionOutcome.RECORDED,
                actor=actor,
                detail=f"before rollback to {result.to_version}",
            ))
            logger.info("Rolling back %s from %s to %s",
                        environment, result.from_version, result.to_version)

            return self._run_pipeline(result, TransitionKind.ROLLBACK, actor,
                                      undo_on_verify_failure=False)
        finally:
            self.locks.release(environment)
