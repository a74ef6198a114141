"""Deploy command for entry environments"""

import click

from ..decorators import require_project
from ..utils.output import console, format_transition_result


@click.command()
@click.option('--env', '-e', 'environment', required=True, help='Entry environment')
@click.option('--version', '-V', 'version', required=True, help='Recorded release version')
@click.option('--actor', help='Name recorded in the audit trail')
@click.option('--output', type=click.Choice(['text', 'json']), default='text', help='Output format')
@click.pass_context
@require_project
def deploy(ctx, tracker, environment, version, actor, output):
    """Deploy a recorded release to an entry environment

    Entry environments are the ones no promotion leads into, usually
    development. Every other environment only receives releases by
    promotion.

    Examples:

        promote-tool release add 1.4.0
        promote-tool deploy --env development --version 1.4.0
    """
    result = tracker.deploy(environment, version, actor=actor)

    if output == 'json':
        console.print_json(data=result.to_dict())
    else:
        format_transition_result(result, "Deploy")

    ctx.exit(int(result.exit_code))
