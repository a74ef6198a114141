# promote_tool/probes/factory.py
"""Health probe factory"""

from typing import Dict, List, Type

from .base import HealthProbe
from .command import CommandProbe
from .http import HttpProbe
from ..constants import ProbeType
from ..models.config import ProbeConfig


class ProbeFactory:
    """Factory for creating health probes"""

    _probes: Dict[ProbeType, Type[HealthProbe]] = {
        ProbeType.HTTP: HttpProbe,
        ProbeType.COMMAND: CommandProbe,
    }

    @classmethod
    def create_from_config(cls, config: ProbeConfig) -> HealthProbe:
        """Create a probe from its configuration

        Raises:
            ValueError: If the probe type is not registered
        """
        probe_type = config.probe_type
        if probe_type not in cls._probes:
            raise ValueError(f"Unsupported probe type: {probe_type.value}")
        return cls._probes[probe_type](config.name, config.to_dict())

    @classmethod
    def create_all(cls, configs: List[ProbeConfig]) -> List[HealthProbe]:
        return [cls.create_from_config(c) for c in configs]
