"""Shared deploy/verify/commit pipeline for environment transitions"""

import getpass
import logging
import os
from datetime import datetime
from typing import Callable, Mapping, Optional

from ..api.exceptions import TransitionInProgressError
from ..constants import ENV_ACTOR, TIMEOUT_GRACE, ErrorCode
from ..core.ledger import VersionLedger
from ..core.locks import EnvironmentLockManager
from ..core.verification import VerificationRunner
from ..executors.base import DeployExecutor
from ..executors.noop import NoopExecutor
from ..models import (
    Config,
    ExecutionOutcome,
    ExecutionStatus,
    FailedStep,
    TransitionKind,
    TransitionOutcome,
    TransitionRecord,
    TransitionResult,
    TransitionStatus,
    Version,
)
from ..utils.async_utils import CallTimeoutError, call_with_timeout
from ..utils.time_utils import format_duration, utcnow

logger = logging.getLogger(__name__)


def default_actor() -> str:
    """Actor recorded in the audit trail when none is given"""
    actor = os.environ.get(ENV_ACTOR)
    if actor:
        return actor
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


class TransitionService:
    """Base class for services that move an environment to another version

    Subclasses decide *whether* a transition may happen. This class owns
    *how* it happens: deploy through the environment's executor, verify
    with the environment's probes, then either commit to the ledger or
    append a failed record and leave the environment state untouched.
    """

    def __init__(self,
                 config: Config,
                 ledger: VersionLedger,
                 locks: EnvironmentLockManager,
                 executors: Mapping[str, DeployExecutor],
                 verifier: VerificationRunner,
                 clock: Callable[[], datetime] = utcnow):
        """Initialize service

        Args:
            config: Project configuration
            ledger: Version ledger
            locks: Per-environment lock manager
            executors: Deploy executor per environment
            verifier: Verification runner
            clock: Source of the current time
        """
        self.config = config
        self.ledger = ledger
        self.locks = locks
        self.executors = dict(executors)
        self.verifier = verifier
        self.clock = clock

    def _executor_for(self, environment: str) -> DeployExecutor:
        executor = self.executors.get(environment)
        if executor is None:
            executor = NoopExecutor()
            self.executors[environment] = executor
        return executor

    def _acquire(self, result: TransitionResult, environment: str, holder: str) -> bool:
        """Take the environment lock, failing the result if it is held"""
        try:
            self.locks.acquire(environment, holder)
        except TransitionInProgressError as e:
            logger.warning(str(e))
            result.fail(FailedStep.LOCK, e.error_code, str(e), holder=e.holder)
            return False
        return True

    # ------------------------------------------------------------------
    # External calls
    # ------------------------------------------------------------------

    def _call_executor(self, operation: str, func: Callable[..., ExecutionOutcome],
                       environment: str, timeout: float, *args) -> ExecutionOutcome:
        try:
            outcome = call_with_timeout(func, timeout + TIMEOUT_GRACE, environment, *args, timeout)
        except CallTimeoutError as e:
            # Executor ignored its timeout; environment stays locked until it returns
            self.locks.release_after(environment, e.future)
            logger.warning("%s on %s is still running after %s; environment stays locked",
                           operation.capitalize(), environment, format_duration(timeout))
            return ExecutionOutcome.timed_out(
                f"{operation} timed out after {format_duration(timeout)}", timeout
            )
        except Exception as e:
            logger.exception("%s raised", operation.capitalize())
            return ExecutionOutcome.failed(f"{operation} error: {e}")

        if not isinstance(outcome, ExecutionOutcome):
            return ExecutionOutcome.failed(f"{operation} returned {outcome!r}")
        return outcome

    def _deploy(self, environment: str, version: Version) -> ExecutionOutcome:
        env_config = self.config.get_environment(environment)
        logger.info("Deploying %s to %s", version, environment)
        return self._call_executor(
            "deploy", self._executor_for(environment).deploy,
            environment, env_config.deploy_timeout, version
        )

    def _undo(self, environment: str) -> ExecutionOutcome:
        env_config = self.config.get_environment(environment)
        logger.info("Undoing last deploy to %s", environment)
        return self._call_executor(
            "undo", self._executor_for(environment).undo,
            environment, env_config.undo_timeout
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _record_failure(self,
                        result: TransitionResult,
                        kind: TransitionKind,
                        actor: str,
                        step: FailedStep,
                        detail: str,
                        source_env: Optional[str] = None,
                        outcome: TransitionOutcome = TransitionOutcome.FAILED) -> TransitionRecord:
        record = TransitionRecord(
            kind=kind,
            source_env=source_env,
            target_env=result.environment,
            from_version=result.from_version,
            to_version=result.to_version,
            outcome=outcome,
            actor=actor,
            failed_step=step.value,
            detail=detail,
        )
        result.record = self.ledger.append_transition(record)
        return record

    def _run_pipeline(self,
                      result: TransitionResult,
                      kind: TransitionKind,
                      actor: str,
                      source_env: Optional[str] = None,
                      undo_on_verify_failure: bool = True) -> TransitionResult:
        """Deploy, verify and commit result.to_version to result.environment

        The caller must hold the environment lock.
        """
        environment = result.environment
        version = result.to_version

        # Deploy
        result.advance(TransitionStatus.DEPLOYING)
        outcome = self._deploy(environment, version)
        result.deploy_outcome = outcome
        if not outcome.success:
            code = ErrorCode.DEPLOY_TIMEOUT if outcome.status == ExecutionStatus.TIMED_OUT \
                else ErrorCode.DEPLOY_FAILED
            detail = outcome.detail or outcome.status.value
            self._record_failure(result, kind, actor, FailedStep.DEPLOY, detail, source_env)
            logger.error("Deploy of %s to %s failed: %s", version, environment, detail)
            result.fail(FailedStep.DEPLOY, code,
                        f"Deploy of {version} to {environment} failed: {detail}")
            return result

        # Verify
        result.advance(TransitionStatus.VERIFYING)
        verification = self.verifier.verify(environment)
        result.verification = verification
        if not verification.healthy:
            record_outcome = TransitionOutcome.FAILED
            detail = f"verification failed at {verification.detail}"

            if undo_on_verify_failure:
                undo = self._undo(environment)
                result.undo_outcome = undo
                if undo.success:
                    record_outcome = TransitionOutcome.ROLLED_BACK
                    detail += "; deploy undone"
                else:
                    result.requires_manual_rollback = True
                    if undo.status == ExecutionStatus.UNSUPPORTED:
                        detail += "; undo unsupported"
                    else:
                        detail += f"; undo failed: {undo.detail}"
                        result.add_error(ErrorCode.UNDO_FAILED, f"Undo on {environment} failed: {undo.detail}")
            else:
                result.requires_manual_rollback = True

            self._record_failure(result, kind, actor, FailedStep.VERIFY, detail, source_env, record_outcome)
            logger.error("Verification of %s in %s failed: %s", version, environment, verification.detail)
            result.fail(FailedStep.VERIFY, ErrorCode.VERIFICATION_FAILED,
                        f"Verification of {version} in {environment} failed at {verification.detail}",
                        probe=verification.failed_probe)
            return result

        # Commit
        result.record = self.ledger.update_environment_state(
            environment, version, actor, kind=kind, source_env=source_env
        )
        result.complete(TransitionStatus.COMMITTED)
        return result
