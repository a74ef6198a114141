"""Initialize command for creating promote-tool projects"""

from pathlib import Path

import click

from ..utils.output import console, fail
from ...api.exceptions import PromoteToolError
from ...constants import EMOJI_ROCKET, EMOJI_SUCCESS, EMOJI_WARNING, PROJECT_CONFIG_FILE
from ...models.config import Config
from ...services.config_service import ConfigService


@click.command()
@click.argument('path', required=False, default='.')
@click.option('--name', '-n', help='Project name (default: directory name)')
@click.option('--force', '-f', is_flag=True, help='Overwrite an existing configuration')
@click.pass_context
def init(ctx, path, name, force):
    """Initialize a new promote-tool project

    Writes a starter .promote-tool.yaml with development, staging and
    production environments. Staging to production requires approval
    and a 24 hour soak in staging.

    Examples:
        promote-tool init
        promote-tool init ./infra --name "Shop infrastructure"
    """
    project_path = Path(path).resolve()
    config_path = project_path / PROJECT_CONFIG_FILE

    if config_path.exists() and not force:
        console.print(f"{EMOJI_WARNING} Project already initialized in {project_path}")
        console.print("Use --force to overwrite the configuration")
        ctx.exit(0)

    try:
        config = Config.default(name or project_path.name)
        ConfigService(config_path).save_config(config)
    except (PromoteToolError, OSError) as e:
        fail(ctx, e)

    console.print(f"{EMOJI_SUCCESS} Created {config_path}")
    console.print()
    console.print(f"{EMOJI_ROCKET} Next steps:")
    console.print("  1. Edit deploy commands and probes for each environment")
    console.print("  2. promote-tool release add 1.0.0")
    console.print("  3. promote-tool deploy --env development --version 1.0.0")
