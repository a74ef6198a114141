"""Promotion service implementation"""

import logging
from typing import Mapping, Optional

from ..api.exceptions import UnknownEnvironmentError, ValidationError
from ..constants import ErrorCode
from ..core.ledger import VersionLedger
from ..core.locks import EnvironmentLockManager
from ..core.policy import PromotionPolicy
from ..core.verification import VerificationRunner
from ..executors.base import DeployExecutor
from ..models import (
    Config,
    DenialReason,
    FailedStep,
    PolicyDecision,
    PromotionResult,
    TransitionKind,
    TransitionStatus,
    Version,
)
from .base import TransitionService, default_actor

logger = logging.getLogger(__name__)


class PromotionService(TransitionService):
    """Moves the version running in one environment to the next one

    promote() walks the state machine
    REQUESTED -> POLICY_CHECKED -> DEPLOYING -> VERIFYING -> COMMITTED,
    ending in REJECTED when the policy (or a precondition) refuses and in
    FAILED when the lock, the deploy or the verification does.
    """

    def __init__(self,
                 config: Config,
                 ledger: VersionLedger,
                 locks: EnvironmentLockManager,
                 executors: Mapping[str, DeployExecutor],
                 verifier: VerificationRunner,
                 policy: PromotionPolicy,
                 **kwargs):
        super().__init__(config, ledger, locks, executors, verifier, **kwargs)
        self.policy = policy

    def _check_policy(self,
                      result: PromotionResult,
                      source: str,
                      target: str,
                      approval_token: Optional[str]) -> bool:
        snapshot = self.ledger.snapshot()
        candidate = snapshot.current_version(source)
        result.to_version = candidate
        result.from_version = snapshot.current_version(target)

        decision = self.policy.can_promote(
            source, target, candidate, snapshot, self.clock(), approval_token
        )
        result.decision = decision
        if not decision:
            logger.warning("Promotion %s -> %s denied (%s): %s",
                           source, target, decision.reason.value, decision.message)
            result.reject(FailedStep.POLICY, ErrorCode.POLICY_DENIED, decision.message,
                          reason=decision.reason.value)
            return False
        return True

    def promote(self,
                source: str,
                target: str,
                approval_token: Optional[str] = None,
                actor: Optional[str] = None) -> PromotionResult:
        """Promote source's current version to target

        Args:
            source: Environment the candidate is running in
            target: Environment to promote to
            approval_token: Token for edges that require approval
            actor: Who requested the promotion

        Returns:
            PromotionResult
        """
        actor = actor or default_actor()
        result = PromotionResult(environment=target, source_env=source)

        if not self._check_policy(result, source, target, approval_token):
            return result
        result.advance(TransitionStatus.POLICY_CHECKED)

        if not self._acquire(result, target, f"{actor} promote {source}->{target}"):
            return result

        try:
            # Another process may have moved either environment since the first check
            if not self._check_policy(result, source, target, approval_token):
                return result

            logger.info("Promoting %s from %s to %s", result.to_version, source, target)
            return self._run_pipeline(result, TransitionKind.PROMOTION, actor, source_env=source)
        finally:
            self.locks.release(target)

    def deploy(self,
               environment: str,
               version,
               actor: Optional[str] = None) -> PromotionResult:
        """Deploy a recorded release into an entry environment

        Entry environments have no incoming promotion edge, so this is the
        only way a new release enters the chain.

        Args:
            environment: Entry environment name
            version: Released version to deploy
            actor: Who requested the deploy

        Returns:
            PromotionResult
        """
        actor = actor or default_actor()
        result = PromotionResult(environment=environment)

        try:
            version = Version.parse(version)
            state = self.ledger.get_environment_state(environment)
        except (UnknownEnvironmentError, ValidationError) as e:
            result.reject(FailedStep.PRECONDITION, e.error_code, str(e))
            return result
        result.to_version = version
        result.from_version = state.current_version if state else None

        if not self._check_deploy(result, environment, version):
            return result
        result.advance(TransitionStatus.POLICY_CHECKED)

        if not self._acquire(result, environment, f"{actor} deploy {version}"):
            return result

        try:
            state = self.ledger.get_environment_state(environment)
            result.from_version = state.current_version if state else None
            if not self._check_deploy(result, environment, version):
                return result

            logger.info("Deploying release %s to entry environment %s", version, environment)
            return self._run_pipeline(result, TransitionKind.DEPLOY, actor)
        finally:
            self.locks.release(environment)

    def _check_deploy(self, result: PromotionResult, environment: str, version: Version) -> bool:
        if not self.config.is_entry_environment(environment):
            sources = ", ".join(e.source for e in self.config.incoming_edges(environment))
            result.reject(
                FailedStep.PRECONDITION, ErrorCode.NOT_AN_ENTRY_ENVIRONMENT,
                f"{environment} is fed by promotion from {sources}; use promote"
            )
            return False

        if self.ledger.get_release(version) is None:
            result.reject(FailedStep.PRECONDITION, ErrorCode.UNKNOWN_VERSION,
                          f"No release recorded for version {version}")
            return False

        current = result.from_version
        if current is not None and version < current:
            decision = PolicyDecision.deny(
                DenialReason.WOULD_DOWNGRADE,
                f"{environment} runs {current}; {version} would be a downgrade (use rollback)"
            )
            result.decision = decision
            result.reject(FailedStep.POLICY, ErrorCode.POLICY_DENIED, decision.message,
                          reason=decision.reason.value)
            return False
        return True
