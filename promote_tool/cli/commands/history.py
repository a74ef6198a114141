"""History command"""

import click

from ..decorators import require_project
from ..utils.output import console, fail, format_history
from ...api.exceptions import PromoteToolError


@click.command()
@click.option('--env', '-e', 'environment', help='Only transitions targeting this environment')
@click.option('--limit', '-n', type=click.IntRange(min=1), default=20, help='Number of records to show')
@click.option('--output', type=click.Choice(['table', 'json']), default='table', help='Output format')
@click.pass_context
@require_project
def history(ctx, tracker, environment, limit, output):
    """Show the transition audit trail, newest first

    Every promotion, deploy and rollback attempt is listed, including
    failed ones and pre-rollback snapshots.
    """
    try:
        records = tracker.history(environment, limit)
    except PromoteToolError as e:
        fail(ctx, e)

    if output == 'json':
        console.print_json(data=[r.to_dict() for r in records])
    elif not records:
        console.print("[yellow]No transitions recorded[/yellow]")
    else:
        format_history(records)
