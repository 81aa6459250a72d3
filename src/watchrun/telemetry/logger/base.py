# src/watchrun/telemetry/logger/base.py

"""
structlog over the standard library `logging` module.

structlog does the event shaping; stdlib handlers decide where records go.
While the interactive watch display owns the terminal, console output can be
switched off so only the log file receives records.
"""

import logging
import sys
from typing import TextIO

import structlog
from structlog.typing import FilteringBoundLogger

from watchrun.telemetry.logger.processors import (
    add_emoji_processor,
    remove_extra_keys_processor,
)

BASE_LOGGER_NAME = "watchrun"

StructLogger = FilteringBoundLogger


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_emoji_processor,
        remove_extra_keys_processor,
    ]


def _console_handler(stream: TextIO, json_logs: bool) -> logging.Handler:
    renderer = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=stream.isatty())
    )
    handler = logging.StreamHandler(stream)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer))
    return handler


def _file_handler(log_file: str, level: int) -> logging.Handler:
    # Files always get JSON, one record per line.
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer(sort_keys=True))
    )
    handler.setLevel(level)
    return handler


def _reset_root_logger(level: int) -> logging.Logger:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)
    return root_logger


def setup_logging(
    level: int = logging.INFO,
    json_logs: bool = False,
    log_file: str | None = None,
    file_only: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configures structlog and the root stdlib logger for the whole process.

    Console records go to `stream` (stderr by default), since stdout carries
    the watch display. `file_only` drops the console handler.
    """
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = _reset_root_logger(level)
    slog = structlog.get_logger(BASE_LOGGER_NAME)

    if not file_only:
        root_logger.addHandler(_console_handler(stream or sys.stderr, json_logs))

    if log_file:
        try:
            root_logger.addHandler(_file_handler(log_file, level))
        except OSError as e:
            slog.error("Cannot open log file", log_file=log_file, error=str(e))
        else:
            slog.debug("File logging enabled", log_file=log_file)

    slog.info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        json_console_format=json_logs,
        console_output_enabled=not file_only,
        log_file=log_file or "None",
    )


# 🔼⚙️
