"""Deploy executors (external provisioning collaborators)"""

from .base import DeployExecutor
from .command import CommandExecutor
from .noop import NoopExecutor
from .factory import ExecutorFactory

__all__ = [
    "DeployExecutor",
    "CommandExecutor",
    "NoopExecutor",
    "ExecutorFactory",
]
