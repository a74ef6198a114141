"""Rollback command"""

import click

from ..decorators import require_project
from ..utils.output import console, format_transition_result


@click.command()
@click.option('--env', '-e', 'environment', required=True, help='Environment to roll back')
@click.option('--to', 'target_version', help='Version to return to (default: previous version)')
@click.option('--actor', help='Name recorded in the audit trail')
@click.option('--output', type=click.Choice(['text', 'json']), default='text', help='Output format')
@click.pass_context
@require_project
def rollback(ctx, tracker, environment, target_version, actor, output):
    """Roll an environment back to an earlier version

    Without --to the most recent older version in the environment's
    history is used. The older version is deployed and verified before
    the ledger is updated. Nothing is undone on failure; a failed
    verification leaves the environment for manual repair.

    \b
    Exit codes:
        0  rolled back and verified
        1  unexpected or configuration error
        3  deploy failed or timed out
        5  another transition holds the environment lock
        6  verification failed, manual rollback required
        7  unknown environment or version, no older version,
           or --to not older than the current version

    Examples:

        promote-tool rollback --env production
        promote-tool rollback --env staging --to 1.2.0
    """
    result = tracker.rollback(environment, target_version, actor=actor)

    if output == 'json':
        console.print_json(data=result.to_dict())
    else:
        format_transition_result(result, "Rollback")

    ctx.exit(int(result.exit_code))
