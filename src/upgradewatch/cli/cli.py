from pathlib import Path

import click
from loguru import logger

from upgradewatch.cli.run_cli import run, stages
from upgradewatch.container import Container
from upgradewatch.logging_config import add_logger_sink
from upgradewatch.services.app_data import AppData
from upgradewatch.workflows.upgrade_workflow import UpgradeWorkflowConfig

_DEFAULTS = UpgradeWorkflowConfig()


@click.group()
@click.option(
    "--debug",
    "-d",
    is_flag=True,
    default=False,
    help="Log at DEBUG level and write a log file to the output directory.",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=AppData.DEFAULT_OUTPUT_DIR,
    show_default=True,
    help="Directory for run reports and the debug log file.",
)
@click.option(
    "--upgrade-version",
    default=_DEFAULTS.version,
    show_default=True,
    help="Version the cluster is upgraded to.",
)
@click.option(
    "--iso-url",
    default=_DEFAULTS.iso_url,
    show_default=True,
    help="URL of the upgrade ISO.",
)
@click.option(
    "--create-version",
    is_flag=True,
    default=False,
    help="Create the Version object before creating the upgrade image.",
)
@click.option(
    "--time-scale",
    type=float,
    default=1.0,
    show_default=True,
    help="Multiplier applied to every poll interval and timeout.",
)
def upgradewatch(
    debug: bool,
    output_dir: Path,
    upgrade_version: str,
    iso_url: str,
    create_version: bool,
    time_scale: float,
):
    """Drive a cluster upgrade and verify it completes.

    Each stage either creates an object or waits for a status condition.
    The run stops at the first failing stage.
    """
    ctx = click.get_current_context()
    obj = ctx.obj or {}

    # Create and configure DI container unless one was handed in
    container = obj.get("container")
    if container is None:
        container = Container()
    container.config.output_dir.from_value(output_dir)
    container.config.debug.from_value(debug)
    container.config.workflow.from_dict(
        {
            "version": upgrade_version,
            "iso_url": iso_url,
            "create_version": create_version,
            "time_scale": time_scale,
        }
    )
    container.wire()

    app_data = container.app_data()

    ctx.obj = {
        "container": container,
        "app_data": app_data,
        "debug": debug,
    }

    # Configure logging based on debug mode
    logger.remove()  # Remove default handler

    def console_sink(msg):
        click.echo(msg, err=True, nl=False)

    add_logger_sink(debug, console_sink, colorize=True)

    # Add file logging if debug enabled
    log_file = app_data.log_file
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        add_logger_sink(debug, log_file, colorize=False, rotation="10 MB")
        logger.debug(f"Debug mode enabled. Logging to {log_file}")


upgradewatch.add_command(run)
upgradewatch.add_command(stages)
