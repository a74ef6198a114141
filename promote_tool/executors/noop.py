# promote_tool/executors/noop.py
"""Executor for ledger-only environments"""

import logging

from .base import DeployExecutor
from ..models import ExecutionOutcome, Version

logger = logging.getLogger(__name__)


class NoopExecutor(DeployExecutor):
    """Accepts every deploy without doing anything

    Used for environments provisioned outside the tool, where only the
    version bookkeeping is wanted.
    """

    def deploy(self, environment: str, version: Version, timeout: float) -> ExecutionOutcome:
        logger.info("No deploy step configured for %s; recording %s only", environment, version)
        return ExecutionOutcome.succeeded("no deploy step configured")
