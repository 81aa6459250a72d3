# src/watchrun/cli/watch_cmds.py
#

import asyncio
import signal
from pathlib import Path

import click
import structlog
from rich.console import Console

from watchrun.cli.utils import config_path_option, logging_options, setup_logging_from_context
from watchrun.config import WatchrunConfig, resolve_config
from watchrun.exceptions import ConfigurationError
from watchrun.runtime.orchestrator import WatchOrchestrator
from watchrun.state import RunArguments
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.watch")


def _handle_signal(sig: int, shutdown_requested: asyncio.Event) -> None:
    signame = signal.Signals(sig).name
    base_log = structlog.get_logger("cli.watch.signal")
    base_log.warning("Received shutdown signal", signal=signame, signal_num=sig)
    if not shutdown_requested.is_set():
        base_log.info("Setting shutdown requested event.")
        shutdown_requested.set()
    else:
        base_log.warning("Shutdown already requested, signal ignored.")


async def _watch(config: WatchrunConfig, argv: RunArguments, console: Console) -> int:
    shutdown_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_signal, sig, shutdown_requested)
    try:
        orchestrator = WatchOrchestrator(config, argv, shutdown_requested, console=console)
        return await orchestrator.run()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)


@click.command(name="watch")
@config_path_option
@click.option("--all", "watch_all", is_flag=True, help="Run all tests on every change instead of related ones.")
@click.option(
    "-t",
    "--test-name-pattern",
    default=None,
    help="Only run tests whose name matches this regex (can be changed with `p`).",
)
@click.argument("pattern", required=False)
@logging_options
@click.pass_context
def watch_cli(
    ctx: click.Context,
    config_path: Path | None,
    watch_all: bool,
    test_name_pattern: str | None,
    pattern: str | None,
    **kwargs,
):
    """Watch files and rerun tests; PATTERN limits runs to matching test paths."""
    try:
        config = resolve_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Error: Configuration problem: {e}", err=True)
        ctx.exit(1)

    # Console logs would tear through the interactive display; a log file takes them all.
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level=config.global_config.log_level,
        file_only=True,
    )

    argv = RunArguments(watch=not watch_all, watch_all=watch_all, pattern=pattern, test_name_pattern=test_name_pattern)
    log.info("Initializing watch mode...", root_dir=str(config.root_dir), mode=argv.mode.value)

    try:
        exit_code = asyncio.run(_watch(config, argv, Console()))
    except KeyboardInterrupt:
        log.warning("Watch interrupted by user.")
        exit_code = 130
    except Exception as e:
        log.critical("Watch mode crashed unexpectedly.", error=str(e), exc_info=True)
        click.echo(f"An unexpected error occurred in watch mode: {e}", err=True)
        ctx.exit(1)

    ctx.exit(exit_code)


# 🔼⚙️
