# src/watchrun/cli/main.py

"""
`watchrun` command group. Global logging options set up here apply to every
subcommand unless the subcommand passes its own.
"""

import click
import structlog

from watchrun import __version__
from watchrun.cli.config_cmds import config_cli
from watchrun.cli.run_cmds import run_cli
from watchrun.cli.utils import logging_options, setup_logging_from_context
from watchrun.cli.watch_cmds import watch_cli
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.main")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", package_name="watchrun")
@logging_options
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, log_file: str | None, json_logs: bool | None):
    """
    Watchrun: interactive watch mode for pytest.

    Reruns the tests related to changed files and lets the keyboard drive
    runs: `a` all tests, `o` changed only, `p` filter by test name, `u`
    update snapshots, `q` quit.

    Configuration precedence: CLI options > Environment Variables > Config File > Defaults.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(
        LOG_LEVEL=log_level,
        LOG_FILE=log_file,
        JSON_LOGS=bool(json_logs),
    )

    setup_logging_from_context(ctx, default_log_level="WARNING")
    log.debug("CLI group initialized", log_level=log_level, log_file=log_file, json_logs=json_logs)


for command in (config_cli, run_cli, watch_cli):
    cli.add_command(command)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
