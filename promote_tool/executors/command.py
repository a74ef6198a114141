# promote_tool/executors/command.py
"""Deploy executor running configured shell commands"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .base import DeployExecutor
from ..constants import ENV_DEPLOY_ENVIRONMENT, ENV_DEPLOY_VERSION
from ..models import ExecutionOutcome, Version
from ..utils.command_utils import CommandRun, render_command, run_command

logger = logging.getLogger(__name__)


class CommandExecutor(DeployExecutor):
    """Runs a command template such as ``terraform apply -var version={version}``

    Placeholders ``{environment}`` and ``{version}`` are substituted and the
    same values are exported as PROMOTE_TOOL_ENVIRONMENT and
    PROMOTE_TOOL_VERSION. Exit code 0 means success.
    """

    def __init__(self, config: Dict[str, Any] = None):
        super().__init__(config)
        self.command: str = self.config["command"]
        self.undo_command: Optional[str] = self.config.get("undo_command")
        self.cwd: Optional[Path] = Path(self.config["cwd"]) if self.config.get("cwd") else None
        self.env: Dict[str, str] = dict(self.config.get("env") or {})

    def _run(self, template: str, environment: str, version: Optional[Version],
             timeout: float) -> CommandRun:
        values = {"environment": environment}
        env = dict(self.env)
        env[ENV_DEPLOY_ENVIRONMENT] = environment
        if version is not None:
            values["version"] = str(version)
            env[ENV_DEPLOY_VERSION] = str(version)

        args = render_command(template, **values)
        logger.info("Running: %s", " ".join(args))
        run = run_command(args, timeout=timeout, cwd=self.cwd, env=env)

        if run.stdout.strip():
            logger.debug("stdout: %s", run.stdout.strip())
        if run.stderr.strip():
            logger.debug("stderr: %s", run.stderr.strip())
        return run

    @staticmethod
    def _outcome(run: CommandRun) -> ExecutionOutcome:
        if run.success:
            return ExecutionOutcome.succeeded(run.summary(), run.duration)
        if run.timed_out:
            return ExecutionOutcome.timed_out(run.summary(), run.duration)
        return ExecutionOutcome.failed(run.summary(), run.duration)

    def deploy(self, environment: str, version: Version, timeout: float) -> ExecutionOutcome:
        return self._outcome(self._run(self.command, environment, version, timeout))

    def undo(self, environment: str, timeout: float) -> ExecutionOutcome:
        if not self.undo_command:
            return ExecutionOutcome.unsupported("No undo_command configured")
        return self._outcome(self._run(self.undo_command, environment, None, timeout))
