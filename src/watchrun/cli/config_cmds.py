# src/watchrun/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from watchrun.cli.utils import config_path_option, logging_options, setup_logging_from_context
from watchrun.config import resolve_config
from watchrun.exceptions import ConfigurationError
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


@click.group(name="config")
def config_cli():
    """Commands for inspecting and validating configuration."""
    pass


@config_cli.command(name="show")
@config_path_option
@logging_options
@click.pass_context
def show_config(ctx: click.Context, config_path: Path | None, **kwargs):
    """Load, validate, and display the effective configuration."""
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )
    log.info("Executing 'config show' command", config_path=str(config_path) if config_path else None)

    try:
        config = resolve_config(config_path)
        log.debug("Configuration loaded successfully by 'show' command.")
        # Echo the rendered string so CliRunner captures it.
        click.echo(pretty_repr(config, expand_all=True))

        if not config.root_dir.is_dir():
            log.warning("Configured root_dir does not exist.", root_dir=str(config.root_dir))

    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e), exc_info=True)
        click.echo(f"Error: Configuration problem:\n{e}", err=True)
        ctx.exit(1)
    except Exception as e:
        log.critical(
            "An unexpected error occurred during 'config show'",
            error=str(e),
            exc_info=True,
        )
        click.echo(f"Error: An unexpected issue occurred: {e}", err=True)
        ctx.exit(2)

# 🔼⚙️
