# src/watchrun/cli/utils.py

import logging
from pathlib import Path

import click
import structlog

from watchrun.telemetry.logger import setup_logging as core_setup_logging

log = structlog.get_logger("cli.utils")

LOG_LEVEL_CHOICES = click.Choice(list(logging._nameToLevel.keys()), case_sensitive=False)

_LOGGING_OPTIONS = (
    click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="WATCHRUN_LOG_LEVEL",
        help="Set the logging level (overrides config file).",
    ),
    click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="WATCHRUN_LOG_FILE",
        help="Write logs to this file as JSON lines. In watch mode, the only log output.",
    ),
    click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="WATCHRUN_JSON_LOGS",
        help="Render console logs as JSON.",
    ),
)


def logging_options(f):
    """Adds --log-level, --log-file and --json-logs to a command."""
    for option in _LOGGING_OPTIONS:
        f = option(f)
    return f


def config_path_option(f):
    """Adds the shared -c/--config-path option."""
    return click.option(
        "-c",
        "--config-path",
        type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
        default=None,
        envvar="WATCHRUN_CONF",
        help="Path to the watchrun configuration file (default: ./watchrun.toml if present).",
        show_envvar=True,
    )(f)


def _numeric_level(name: str) -> tuple[str, int]:
    level = logging.getLevelName(name.upper())
    if isinstance(level, int):
        return name.upper(), level
    return "WARNING", logging.WARNING


def setup_logging_from_context(
    ctx: click.Context,
    local_log_level: str | None = None,
    local_log_file: str | None = None,
    local_json_logs: bool | None = None,
    default_log_level: str = "WARNING",
    file_only: bool = False,
) -> None:
    """
    Configures logging from the group-level options in `ctx.obj`; options
    given to the subcommand itself win.
    """
    ctx.ensure_object(dict)
    level_name, level = _numeric_level(local_log_level or ctx.obj.get("LOG_LEVEL") or default_log_level)
    log_file = local_log_file or ctx.obj.get("LOG_FILE")
    json_logs = local_json_logs if local_json_logs is not None else ctx.obj.get("JSON_LOGS", False)

    # Without a file, file-only would silence everything.
    file_only = file_only and log_file is not None

    core_setup_logging(level=level, json_logs=json_logs, log_file=log_file, file_only=file_only)
    log.debug(
        "CLI logging initialized",
        level=level_name,
        file=log_file or "console",
        json=json_logs,
        file_only=file_only,
    )

# ⚙️🛠️
