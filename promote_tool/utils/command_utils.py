"""Shell command helpers for deploy executors and probes"""

import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .time_utils import format_duration

MAX_OUTPUT_CHARS = 2000


@dataclass
class CommandRun:
    """Outcome of running one external command"""
    args: List[str]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.timed_out and self.error is None and self.returncode == 0

    def summary(self) -> str:
        """One-line description for logs and audit records"""
        command = " ".join(self.args)
        if self.timed_out:
            return f"'{command}' timed out after {format_duration(self.duration)}"
        if self.error:
            return f"'{command}' could not run: {self.error}"
        tail = _tail(self.stderr) or _tail(self.stdout)
        text = f"'{command}' exited with {self.returncode}"
        return f"{text}: {tail}" if tail and self.returncode != 0 else text


def _tail(output: str) -> str:
    output = (output or "").strip()
    if not output:
        return ""
    last = output.splitlines()[-1]
    return last[-MAX_OUTPUT_CHARS:]


def render_command(template: str, **values: str) -> List[str]:
    """Substitute ``{name}`` placeholders and split into argv

    Only the given names are replaced, so other braces (jq filters, JSON)
    pass through untouched.

    Examples:
        >>> render_command("deploy.sh {environment} {version}", environment="dev", version="1.2.0")
        ['deploy.sh', 'dev', '1.2.0']
    """
    text = template
    for name, value in values.items():
        text = text.replace("{" + name + "}", str(value))
    return shlex.split(text)


def run_command(args: List[str],
                timeout: Optional[float] = None,
                cwd: Optional[Path] = None,
                env: Optional[Dict[str, str]] = None) -> CommandRun:
    """
    Run a command and capture its result without raising

    Args:
        args: Command argv
        timeout: Seconds before the command is killed
        cwd: Working directory
        env: Extra environment variables

    Returns:
        CommandRun describing the outcome
    """
    run_env = os.environ.copy()
    if env:
        run_env.update(env)

    start = time.monotonic()
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            env=run_env,
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except subprocess.TimeoutExpired as e:
        return CommandRun(
            args=args,
            returncode=None,
            stdout=_decode(e.stdout),
            stderr=_decode(e.stderr),
            duration=time.monotonic() - start,
            timed_out=True,
        )
    except OSError as e:
        return CommandRun(
            args=args,
            returncode=None,
            duration=time.monotonic() - start,
            error=str(e),
        )

    return CommandRun(
        args=args,
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        duration=time.monotonic() - start,
    )


def _decode(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode('utf-8', errors='replace')
    return output
