# promote_tool/cli/utils/output.py
"""Output formatting utilities"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ...api.exceptions import (
    DuplicateVersionError,
    NoPriorVersionError,
    PromoteToolError,
    TransitionInProgressError,
    UnknownEnvironmentError,
    UnknownVersionError,
    ValidationError,
)
from ...constants import (
    EMOJI_ERROR,
    EMOJI_WARNING,
    MSG_DEPLOY_COMMITTED,
    MSG_LOCK_HELD,
    MSG_MANUAL_ROLLBACK,
    MSG_PROMOTION_COMMITTED,
    MSG_ROLLBACK_COMMITTED,
    ExitCode,
)
from ...models import (
    FailedStep,
    PromotionResult,
    Release,
    RollbackResult,
    TransitionOutcome,
    TransitionRecord,
    TransitionResult,
)
from ...utils.time_utils import format_duration, format_timestamp

console = Console()

OUTCOME_STYLES = {
    TransitionOutcome.SUCCEEDED: "green",
    TransitionOutcome.FAILED: "red",
    TransitionOutcome.ROLLED_BACK: "yellow",
    TransitionOutcome.RECORDED: "dim",
}


def print_error(message: str) -> None:
    console.print(f"[red]{EMOJI_ERROR} {escape(message)}[/red]")


def print_warning(message: str) -> None:
    console.print(f"[yellow]{EMOJI_WARNING} {escape(message)}[/yellow]")


def exit_code_for(error: Exception) -> ExitCode:
    """Exit code for an exception raised outside a transition result"""
    if isinstance(error, TransitionInProgressError):
        return ExitCode.LOCK_HELD
    if isinstance(error, (UnknownEnvironmentError, UnknownVersionError, DuplicateVersionError,
                          NoPriorVersionError, ValidationError)):
        return ExitCode.PRECONDITION_FAILED
    return ExitCode.ERROR


def fail(ctx, error: Exception) -> None:
    """Report error and exit with its code"""
    if isinstance(error, (PromoteToolError, ValueError)):
        print_error(str(error))
    else:
        print_error(f"Error: {error}")
    if ctx.obj is not None and ctx.obj.debug and not isinstance(error, PromoteToolError):
        console.print_exception()
    ctx.exit(int(exit_code_for(error)))


def _version(value) -> str:
    return str(value) if value is not None else "-"


def _committed_message(result: TransitionResult) -> str:
    if isinstance(result, RollbackResult):
        return MSG_ROLLBACK_COMMITTED.format(
            target=result.environment,
            from_version=_version(result.from_version),
            to_version=_version(result.to_version),
        )
    if isinstance(result, PromotionResult) and result.source_env:
        return MSG_PROMOTION_COMMITTED.format(
            version=result.to_version, source=result.source_env, target=result.environment
        )
    return MSG_DEPLOY_COMMITTED.format(version=result.to_version, target=result.environment)


def format_transition_result(result: TransitionResult, title: str) -> None:
    """Format and display a promotion, deploy or rollback result"""
    if result.is_success:
        lines = [
            f"[green]{_committed_message(result)}[/green]",
            "",
            f"[bold]Environment:[/bold] {result.environment}",
            f"[bold]From:[/bold] {_version(result.from_version)}",
            f"[bold]To:[/bold] {_version(result.to_version)}",
        ]
        if result.verification and result.verification.checks:
            lines.append(f"[bold]Checks passed:[/bold] {len(result.verification.checks)}")
        if result.duration is not None:
            lines.append(f"[bold]Duration:[/bold] {format_duration(result.duration)}")
        if result.record:
            lines.append(f"[bold]Record:[/bold] {result.record.id}")

        console.print(Panel("\n".join(lines), title=f"{title} Result", border_style="green"))
        return

    if result.failed_step == FailedStep.LOCK:
        lines = [f"[yellow]{MSG_LOCK_HELD.format(environment=result.environment)}[/yellow]"]
    else:
        lines = [f"[red]{EMOJI_ERROR} {title} failed:[/red] {escape(result.error or '')}"]

    lines.append("")
    lines.append(f"[bold]Status:[/bold] {result.status.value}")
    if result.failed_step:
        lines.append(f"[bold]Failed step:[/bold] {result.failed_step.value}")
    if result.decision and not result.decision.allowed:
        lines.append(f"[bold]Reason:[/bold] {result.decision.reason.value}")
    if result.to_version is not None:
        lines.append(f"[bold]Version:[/bold] {_version(result.from_version)} -> {result.to_version}")
    if result.deploy_outcome and not result.deploy_outcome.success:
        lines.append(f"[bold]Deploy:[/bold] {escape(result.deploy_outcome.detail)}")
    if result.verification and not result.verification.healthy:
        lines.append(f"[bold]Failed probe:[/bold] {escape(result.verification.detail)}")
    if result.undo_outcome:
        lines.append(
            f"[bold]Undo:[/bold] {result.undo_outcome.status.value} {escape(result.undo_outcome.detail)}".rstrip()
        )
    if result.requires_manual_rollback:
        lines.append("")
        lines.append(f"[bold red]{MSG_MANUAL_ROLLBACK.format(environment=result.environment)}[/bold red]")
    if result.record:
        lines.append(f"[bold]Record:[/bold] {result.record.id}")

    border = "yellow" if result.failed_step in (FailedStep.LOCK, FailedStep.POLICY) else "red"
    console.print(Panel("\n".join(lines), title=f"{title} Error", border_style=border))


def format_status(statuses) -> None:
    """Display environment status table"""
    table = Table(title="Environment Status", box=box.SIMPLE)
    table.add_column("Environment", style="cyan", no_wrap=True)
    table.add_column("Version", style="green")
    table.add_column("Updated", style="yellow")
    table.add_column("Prior Versions")
    table.add_column("Lock")
    table.add_column("Last Attempt")

    for st in statuses:
        state = st.state
        last = "-"
        if st.last_attempt:
            style = OUTCOME_STYLES.get(st.last_attempt.outcome, "white")
            last = (
                f"[{style}]{st.last_attempt.kind.value} {st.last_attempt.to_version} "
                f"{st.last_attempt.outcome.value}[/{style}]"
            )
        table.add_row(
            st.name,
            _version(st.current_version),
            format_timestamp(state.updated_at) if state else "-",
            ", ".join(str(v) for v in reversed(state.history)) if state and state.history else "-",
            f"[red]locked by {escape(st.lock.holder)}[/red]" if st.lock else "free",
            last,
        )

    console.print(table)

    for st in statuses:
        if st.last_attempt_failed:
            print_warning(
                f"Last attempt on {st.name} did not succeed "
                f"({st.last_attempt.failed_step or st.last_attempt.outcome.value}): {st.last_attempt.detail}"
            )


def format_releases(releases: List[Release]) -> None:
    table = Table(title="Releases", box=box.SIMPLE)
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("Components", justify="center", style="green")
    table.add_column("Released", style="yellow")
    table.add_column("Changelog")

    for rel in releases:
        table.add_row(
            str(rel.version),
            str(len(rel.components)),
            format_timestamp(rel.released_at),
            escape(rel.changelog) or "-",
        )

    console.print(table)


def format_release(release: Release, deployed_to: Optional[List[str]] = None) -> None:
    lines = [
        f"[bold]Version:[/bold] {release.version}",
        f"[bold]Released:[/bold] {format_timestamp(release.released_at)}",
    ]
    if release.changelog:
        lines.append(f"[bold]Changelog:[/bold] {escape(release.changelog)}")
    if deployed_to:
        lines.append(f"[bold]Running in:[/bold] {', '.join(deployed_to)}")
    if release.components:
        lines.append("")
        lines.append("[bold]Components:[/bold]")
        for name in sorted(release.components):
            lines.append(f"  • {name}: {release.components[name]}")

    console.print(Panel("\n".join(lines), title=f"Release {release.version}", border_style="cyan"))


def format_history(records: List[TransitionRecord]) -> None:
    table = Table(title="Transition History", box=box.SIMPLE)
    table.add_column("Time", style="yellow", no_wrap=True)
    table.add_column("Environment", style="cyan")
    table.add_column("Kind")
    table.add_column("Change")
    table.add_column("Outcome")
    table.add_column("Actor")
    table.add_column("Detail")

    for record in records:
        style = OUTCOME_STYLES.get(record.outcome, "white")
        change = f"{_version(record.from_version)} -> {record.to_version}"
        if record.source_env:
            change = f"{change} (from {record.source_env})"
        outcome = record.outcome.value
        if record.failed_step:
            outcome = f"{outcome} at {record.failed_step}"
        table.add_row(
            format_timestamp(record.timestamp),
            record.target_env,
            record.kind.value,
            change,
            f"[{style}]{outcome}[/{style}]",
            escape(record.actor),
            escape(record.detail or ""),
        )

    console.print(table)
