# promote_tool/executors/base.py
"""Deploy executor abstract base class"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..models import ExecutionOutcome, Version


class DeployExecutor(ABC):
    """Applies a version to an environment

    Executors wrap whatever actually provisions an environment (Terraform,
    Bicep, a shell script). Only the outcome is reported back.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize executor

        Args:
            config: Executor-specific configuration
        """
        self.config = config or {}

    @abstractmethod
    def deploy(self, environment: str, version: Version, timeout: float) -> ExecutionOutcome:
        """
        Deploy version to environment

        Args:
            environment: Environment name
            version: Version to apply (may be older than the current one)
            timeout: Seconds before the attempt counts as failed

        Returns:
            ExecutionOutcome
        """
        pass

    def undo(self, environment: str, timeout: float) -> ExecutionOutcome:
        """
        Revert the most recent deploy to environment

        Executors that cannot undo report UNSUPPORTED.
        """
        return ExecutionOutcome.unsupported(f"{self.__class__.__name__} cannot undo deployments")
