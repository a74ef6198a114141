# promote_tool/probes/command.py
"""Command health probe"""

from typing import Any, Dict, List

from .base import HealthProbe
from ..models import CheckResult
from ..utils.command_utils import render_command, run_command


class CommandProbe(HealthProbe):
    """Healthy when the command exits 0, e.g. ``az group show --name ...``"""

    def __init__(self, name: str, config: Dict[str, Any] = None):
        super().__init__(name, config)
        self.command: str = self.config["command"]

    def check(self, environment: str, timeout: float) -> List[CheckResult]:
        run = run_command(render_command(self.command, environment=environment), timeout=timeout)
        return [CheckResult(self.name, run.success, run.summary())]
