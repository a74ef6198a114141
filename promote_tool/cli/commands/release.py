"""Release management commands"""

import click

from ..decorators import require_project
from ..utils.output import console, fail, format_release, format_releases
from ...api.exceptions import PromoteToolError, UnknownVersionError, ValidationError
from ...constants import EMOJI_SUCCESS
from ...models import Version


def _parse_components(values):
    components = {}
    for item in values:
        name, sep, version = item.partition('=')
        if not sep or not name or not version:
            raise click.BadParameter(f"expected NAME=VERSION, got {item!r}", param_hint="'--component'")
        if name in components:
            raise click.BadParameter(f"component {name!r} given twice", param_hint="'--component'")
        components[name] = version
    return components


@click.group()
def release():
    """Manage release versions

    A release is an immutable version with the component versions it
    bundles. Releases must be recorded before they can be deployed.
    """
    pass


@release.command('add')
@click.argument('version')
@click.option('--component', '-c', 'components', multiple=True, metavar='NAME=VERSION',
              help='Component version bundled in the release (repeatable)')
@click.option('--changelog', default='', help='Changelog reference or summary')
@click.pass_context
@require_project
def add(ctx, tracker, version, components, changelog):
    """Record a new release

    Examples:

        promote-tool release add 1.4.0 -c api=1.4.0 -c db-schema=12.0.0 --changelog "CHANGELOG.md#140"
    """
    component_map = _parse_components(components)
    try:
        rel = tracker.add_release(version, component_map, changelog)
    except PromoteToolError as e:
        fail(ctx, e)

    console.print(f"{EMOJI_SUCCESS} Recorded release {rel.version}")


@release.command('list')
@click.option('--output', type=click.Choice(['table', 'json', 'brief']),
              default='table', help='Output format')
@click.pass_context
@require_project
def list_releases(ctx, tracker, output):
    """List recorded releases, newest first"""
    releases = tracker.ledger.list_releases()

    if not releases:
        console.print("[yellow]No releases found[/yellow]")
        return

    if output == 'json':
        console.print_json(data=[r.to_dict() for r in releases])
    elif output == 'brief':
        for rel in releases:
            click.echo(str(rel.version))
    else:
        format_releases(releases)


@release.command('show')
@click.argument('version')
@click.option('--output', type=click.Choice(['table', 'json']), default='table', help='Output format')
@click.pass_context
@require_project
def show(ctx, tracker, version, output):
    """Show release details and where it is running"""
    try:
        version = Version.parse(version)
        rel = tracker.ledger.get_release(version)
        if rel is None:
            raise UnknownVersionError(version)
    except (UnknownVersionError, ValidationError) as e:
        fail(ctx, e)

    snapshot = tracker.ledger.snapshot()
    deployed_to = [
        name for name in tracker.workspace.config.environments
        if snapshot.current_version(name) == version
    ]

    if output == 'json':
        data = rel.to_dict()
        data['deployed_to'] = deployed_to
        console.print_json(data=data)
    else:
        format_release(rel, deployed_to)
