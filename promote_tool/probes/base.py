# promote_tool/probes/base.py
"""Health probe abstract base class"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models import CheckResult


class HealthProbe(ABC):
    """Checks one aspect of an environment's health"""

    def __init__(self, name: str, config: Dict[str, Any] = None):
        """
        Initialize probe

        Args:
            name: Probe name used in reports
            config: Probe-specific configuration
        """
        self.name = name
        self.config = config or {}

    @property
    def timeout(self) -> Optional[float]:
        return self.config.get("timeout")

    @abstractmethod
    def check(self, environment: str, timeout: float) -> List[CheckResult]:
        """
        Run the probe

        Args:
            environment: Environment name
            timeout: Seconds allowed for the probe

        Returns:
            One CheckResult per named check performed
        """
        pass
