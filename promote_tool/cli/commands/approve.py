"""Approve command"""

import click

from ..decorators import require_project
from ..utils.output import console, fail
from ...api.exceptions import PromoteToolError, UnknownEnvironmentError
from ...constants import EMOJI_SUCCESS


@click.command()
@click.option('--to', 'target', required=True, help='Environment the promotion goes to')
@click.option('--version', '-V', 'version', required=True, help='Version being approved')
@click.option('--quiet-token', '-t', is_flag=True, help='Print the token only')
@click.pass_context
@require_project
def approve(ctx, tracker, target, version, quiet_token):
    """Issue an approval token for a gated promotion

    The token is bound to the target environment and version, and is
    signed with the project's approval secret
    (PROMOTE_TOOL_APPROVAL_SECRET).

    Examples:

        TOKEN=$(promote-tool approve --to production --version 2.0.0 -t)
        promote-tool promote --from staging --to production --approval "$TOKEN"
    """
    if target not in tracker.workspace.config.environments:
        fail(ctx, UnknownEnvironmentError(target))
    try:
        token = tracker.issue_approval(target, version)
    except (PromoteToolError, ValueError) as e:
        fail(ctx, e)

    if quiet_token:
        click.echo(token)
    else:
        console.print(f"{EMOJI_SUCCESS} Approved {version} for {target}")
        console.print(f"[bold]Token:[/bold] {token}")
