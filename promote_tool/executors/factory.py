# promote_tool/executors/factory.py
"""Deploy executor factory"""

from typing import Dict, Type

from .base import DeployExecutor
from .command import CommandExecutor
from .noop import NoopExecutor
from ..constants import ExecutorType
from ..models.config import ExecutorConfig


class ExecutorFactory:
    """Factory for creating deploy executors"""

    # Registry of executor implementations
    _executors: Dict[ExecutorType, Type[DeployExecutor]] = {
        ExecutorType.COMMAND: CommandExecutor,
        ExecutorType.NOOP: NoopExecutor,
    }

    @classmethod
    def create_from_config(cls, config: ExecutorConfig) -> DeployExecutor:
        """Create an executor from an environment's deploy configuration

        Raises:
            ValueError: If the executor type is not registered
        """
        executor_type = config.executor_type
        if executor_type not in cls._executors:
            raise ValueError(f"Unsupported deploy type: {executor_type.value}")
        return cls._executors[executor_type](config.to_dict())
