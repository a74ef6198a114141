"""Status command"""

import click

from ..decorators import require_project
from ..utils.output import console, fail, format_status
from ...api.exceptions import PromoteToolError


@click.command()
@click.option('--env', '-e', 'environment', help='Show one environment only')
@click.option('--output', type=click.Choice(['table', 'json']), default='table', help='Output format')
@click.pass_context
@require_project
def status(ctx, tracker, environment, output):
    """Show what every environment is running

    Lists the current version, when it was deployed, prior versions,
    whether a transition is in progress and how the last attempt ended.
    """
    try:
        if environment:
            statuses = [tracker.status(environment)]
        else:
            statuses = tracker.status_all()
    except PromoteToolError as e:
        fail(ctx, e)

    if output == 'json':
        data = [s.to_dict() for s in statuses]
        console.print_json(data=data[0] if environment else data)
    else:
        format_status(statuses)
