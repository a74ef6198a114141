"""Promote command"""

import click

from ..decorators import require_project
from ..utils.output import console, format_transition_result


@click.command()
@click.option('--from', 'source', required=True, help='Environment the release is running in')
@click.option('--to', 'target', required=True, help='Environment to promote to')
@click.option('--approval', 'approval_token', envvar='PROMOTE_TOOL_APPROVAL_TOKEN',
              help='Approval token for gated promotions')
@click.option('--actor', help='Name recorded in the audit trail')
@click.option('--output', type=click.Choice(['text', 'json']), default='text', help='Output format')
@click.pass_context
@require_project
def promote(ctx, tracker, source, target, approval_token, actor, output):
    """Promote the version running in one environment to the next

    The promotion is checked against the configured policy, deployed,
    verified, and only then recorded in the ledger.

    Examples:

        # Promote development's release to staging
        promote-tool promote --from development --to staging

        # Gated promotion to production
        promote-tool promote --from staging --to production --approval <token>
    """
    result = tracker.promote(source, target, approval_token=approval_token, actor=actor)

    if output == 'json':
        console.print_json(data=result.to_dict())
    else:
        format_transition_result(result, "Promotion")

    ctx.exit(int(result.exit_code))
