# promote_tool/cli/main.py
"""Main CLI entry point for promote-tool"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.logging import RichHandler

from ..__version__ import __version__
from ..api.tracker import Tracker
from ..constants import APP_NAME, ENV_LOG_LEVEL, LOG_FORMAT, ExitCode
from .utils.output import console

# Import all commands
from .commands import (
    init,
    release,
    deploy,
    promote,
    rollback,
    status,
    history,
    approve,
)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.getLevelName(os.environ.get(ENV_LOG_LEVEL, "WARNING").upper())
        if not isinstance(level, int):
            level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ],
        force=True,
    )

    # Adjust third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)


class Context:
    """CLI context object with lazy project loading

    The project configuration is only located and parsed when a command
    asks for the tracker, so `init` and `--help` work outside a project.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path
        self.verbose: bool = False
        self.debug: bool = False
        self._tracker: Optional[Tracker] = None

    @property
    def tracker(self) -> Tracker:
        """Get tracker (lazy loading)

        Raises:
            ProjectNotFoundError: If no project configuration is found
            ConfigError: If the configuration is invalid
        """
        if self._tracker is None:
            self._tracker = Tracker(config_path=self.config_path)
            if self.debug:
                console.print(f"[dim]Project root: {self._tracker.workspace.project_root}[/dim]")
        return self._tracker


@click.group(name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Path to .promote-tool.yaml')
@click.version_option(version=__version__, prog_name=APP_NAME)
@click.pass_context
def cli(ctx, verbose, debug, quiet, config_path):
    """Promote Tool - track, promote and roll back environment versions

    Keeps a ledger of which release every environment runs, promotes
    releases along configured paths (development -> staging -> production)
    and rolls environments back to earlier versions. Every change is
    deployed, verified and only then committed to the ledger.
    """
    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        logging.disable(logging.NOTSET)
        setup_logging(verbose=verbose, debug=debug)

    ctx.obj = Context(config_path)
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug


# Register commands
cli.add_command(init.init)
cli.add_command(release.release)
cli.add_command(deploy.deploy)
cli.add_command(promote.promote)
cli.add_command(rollback.rollback)
cli.add_command(status.status)
cli.add_command(history.history)
cli.add_command(approve.approve)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(int(ExitCode.ERROR))


if __name__ == "__main__":
    main()
