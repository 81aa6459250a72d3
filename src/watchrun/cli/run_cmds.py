# src/watchrun/cli/run_cmds.py
#

import asyncio
from pathlib import Path

import attrs
import click
import structlog
from rich.console import Console

from watchrun.cli.utils import config_path_option, logging_options, setup_logging_from_context
from watchrun.config import WatchrunConfig, resolve_config
from watchrun.exceptions import ConfigurationError, RunCoordinatorError
from watchrun.reporters import ConsoleReporter, ReporterDispatcher
from watchrun.runner import SubprocessRunCoordinator
from watchrun.runtime.cancellation import CancellationToken
from watchrun.search import build_context
from watchrun.state import RunArguments
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")


async def run_once(config: WatchrunConfig, argv: RunArguments, console: Console) -> bool:
    """Runs the selected tests once; True when every suite passed and no reporter failed."""
    dispatcher = ReporterDispatcher()
    dispatcher.register(ConsoleReporter(console))
    coordinator = SubprocessRunCoordinator(dispatcher)

    context = await asyncio.to_thread(build_context, config, (), False)
    results = await coordinator.run(context, config, argv, console, CancellationToken())
    return results.success and not dispatcher.has_errors()


@click.command(name="run")
@config_path_option
@click.option("-t", "--test-name-pattern", default=None, help="Only run tests whose name matches this regex.")
@click.option("-u", "--update-snapshot", is_flag=True, help="Update failing snapshots during this run.")
@click.argument("pattern", required=False)
@logging_options
@click.pass_context
def run_cli(
    ctx: click.Context,
    config_path: Path | None,
    test_name_pattern: str | None,
    update_snapshot: bool,
    pattern: str | None,
    **kwargs,
):
    """Run the test suite once; PATTERN limits the run to matching test paths."""
    try:
        config = resolve_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Error: Configuration problem: {e}", err=True)
        ctx.exit(1)

    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level=config.global_config.log_level,
    )
    if update_snapshot:
        config = attrs.evolve(config, update_snapshot=True)

    argv = RunArguments(watch=False, pattern=pattern, test_name_pattern=test_name_pattern)
    log.info("Executing 'run' command", root_dir=str(config.root_dir), pattern=pattern)

    try:
        passed = asyncio.run(run_once(config, argv, Console()))
    except RunCoordinatorError as e:
        log.error("Test run could not be executed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        ctx.exit(2)

    ctx.exit(0 if passed else 1)


# 🔼⚙️
