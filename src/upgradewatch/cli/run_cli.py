import signal
import sys
import threading
from contextlib import contextmanager

import click
from dependency_injector.wiring import inject, Provide
from loguru import logger
from rich.console import Console
from rich.table import Table

from upgradewatch.container import Container
from upgradewatch.core.clock import CancellationToken
from upgradewatch.exceptions import UpgradeWatchError, WorkflowValidationError
from upgradewatch.orchestration.sequencer import RunOutcome, StageStatus
from upgradewatch.orchestration.stages import Stage
from upgradewatch.workflows.upgrade_workflow import (
    UpgradeWorkflowConfig,
    build_upgrade_stages,
)

STATUS_STYLES = {
    StageStatus.PENDING: ("⏸ Not run", "dim"),
    StageStatus.RUNNING: ("… Running", "yellow"),
    StageStatus.SUCCEEDED: ("✅ Succeeded", "green"),
    StageStatus.FAILED: ("❌ Failed", "red"),
}


def format_seconds(seconds: float | None) -> str:
    if seconds is None:
        return "-"
    if seconds >= 60:
        return f"{seconds / 60:.1f}m"
    return f"{seconds:.1f}s"


def display_outcome(console: Console, outcome: RunOutcome) -> None:
    """Display per-stage results in a table (CLI layer)."""
    table = Table(title=f"Upgrade run: {outcome.status.value}")
    table.add_column("#", style="cyan")
    table.add_column("Stage", style="green")
    table.add_column("Status")
    table.add_column("Elapsed", style="magenta")
    table.add_column("Detail")

    for position, report in enumerate(outcome.stages, start=1):
        label, style = STATUS_STYLES[report.status]
        detail = str(report.error) if report.error is not None else report.detail
        table.add_row(
            str(position),
            report.label,
            f"[{style}]{label}[/{style}]",
            format_seconds(report.elapsed),
            detail,
        )

    console.print(table)
    console.print(outcome.summary())


def display_stages(console: Console, stages: list[Stage]) -> None:
    """Display the configured pipeline in a table (CLI layer)."""
    table = Table(title="Upgrade stages")
    table.add_column("#", style="cyan")
    table.add_column("Stage", style="green")
    table.add_column("Action", style="yellow")
    table.add_column("Interval", style="blue")
    table.add_column("Timeout", style="magenta")

    for position, stage in enumerate(stages, start=1):
        table.add_row(
            str(position),
            stage.label,
            stage.action.value,
            format_seconds(stage.interval),
            format_seconds(stage.timeout),
        )

    console.print(table)


@contextmanager
def cancel_on_interrupt(token: CancellationToken):
    """Turn Ctrl-C into a cancellation of the running wait."""
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def handler(signum, frame):
        token.cancel("interrupted by user")

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


@click.command()
@click.option(
    "--server",
    "-s",
    envvar="UPGRADEWATCH_SERVER",
    required=True,
    help="API server URL, e.g. https://10.10.0.10:6443.",
)
@click.option(
    "--token",
    "-t",
    "api_token",
    envvar="UPGRADEWATCH_TOKEN",
    default=None,
    help="Bearer token used to authenticate against the API server.",
)
@click.option(
    "--insecure",
    is_flag=True,
    default=False,
    help="Skip TLS certificate verification.",
)
@click.option(
    "--ca-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="CA bundle used to verify the API server certificate.",
)
def run(server: str, api_token: str | None, insecure: bool, ca_file: str | None):
    """Run the upgrade workflow and report each stage."""
    ctx = click.get_current_context()
    container = ctx.obj["container"]

    container.config.server.from_value(server)
    container.config.token.from_value(api_token)
    container.config.verify.from_value(False if insecure else (ca_file or True))

    try:
        workflow = container.upgrade_workflow()

        # Run validate-then-run lifecycle
        workflow.validate()
        with cancel_on_interrupt(CancellationToken()) as token:
            outcome = workflow.run(token)
    except WorkflowValidationError as e:
        logger.error(f"Validation failed: {e}")
        sys.exit(1)
    except UpgradeWatchError as e:
        logger.error(str(e))
        sys.exit(1)

    display_outcome(Console(), outcome)

    report_path = container.run_report_writer().save(
        outcome,
        metadata={
            "server": server,
            "version": workflow.config.version,
            "iso_url": workflow.config.iso_url,
        },
    )
    click.echo(f"Run report: {report_path}")

    if not outcome.succeeded:
        logger.error(outcome.summary())
        sys.exit(1)


@click.command()
@inject
def stages(
    workflow_config: UpgradeWorkflowConfig = Provide[Container.workflow_config],
):
    """List the stages of the upgrade workflow with their timings."""
    display_stages(Console(), build_upgrade_stages(workflow_config))
