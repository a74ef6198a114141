"""Health probes (external verification collaborators)"""

from .base import HealthProbe
from .http import HttpProbe
from .command import CommandProbe
from .factory import ProbeFactory

__all__ = [
    "HealthProbe",
    "HttpProbe",
    "CommandProbe",
    "ProbeFactory",
]
