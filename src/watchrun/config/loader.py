#
# config/loader.py
#
"""
Loads `watchrun.toml` into a validated WatchrunConfig.
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
from attrs import fields

from watchrun.config.models import GlobalConfig, WatchrunConfig
from watchrun.exceptions import ConfigurationError
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("config.loader")

DEFAULT_CONFIG_NAME = "watchrun.toml"
ENV_LOG_LEVEL = "WATCHRUN_LOG_LEVEL"

_WATCH_KEYS = {a.name for a in fields(WatchrunConfig)} - {"global_config"}
_GLOBAL_KEYS = {a.name for a in fields(GlobalConfig)}


def _structure_global(data: Mapping[str, Any], path: Path) -> GlobalConfig:
    unknown = set(data) - _GLOBAL_KEYS
    if unknown:
        raise ConfigurationError(f"Unknown keys in [global]: {sorted(unknown)}", path=str(path))
    values = dict(data)
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        log.debug("Global log level overridden by environment", env_var=ENV_LOG_LEVEL, value=env_level)
        values["log_level"] = env_level
    return GlobalConfig(**values)


def _structure_watch(data: Mapping[str, Any], path: Path) -> dict[str, Any]:
    unknown = set(data) - _WATCH_KEYS
    if unknown:
        raise ConfigurationError(f"Unknown keys in [watch]: {sorted(unknown)}", path=str(path))
    values = dict(data)
    root_dir = Path(values.get("root_dir", ".")).expanduser()
    if not root_dir.is_absolute():
        root_dir = path.parent / root_dir
    values["root_dir"] = root_dir.resolve()
    return values


def load_config(path: Path) -> WatchrunConfig:
    """
    Reads and validates a TOML configuration file.

    The file has two optional tables, `[global]` and `[watch]`. A relative
    `root_dir` is resolved against the directory holding the file.
    """
    load_log = log.bind(path=str(path))
    load_log.debug("Loading configuration")
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError("Configuration file not found", path=str(path), details=e) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML: {e}", path=str(path), details=e) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration: {e}", path=str(path), details=e) from e

    unknown_tables = set(raw) - {"global", "watch"}
    if unknown_tables:
        raise ConfigurationError(f"Unknown tables: {sorted(unknown_tables)}", path=str(path))

    try:
        global_config = _structure_global(raw.get("global", {}), path)
        watch_values = _structure_watch(raw.get("watch", {}), path)
        config = WatchrunConfig(global_config=global_config, **watch_values)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}", path=str(path), details=e) from e

    load_log.info("Configuration loaded", root_dir=str(config.root_dir))
    return config


def resolve_config(path: Path | None, cwd: Path | None = None) -> WatchrunConfig:
    """
    Loads `path` if given, else `watchrun.toml` from the working directory when
    it exists, else the defaults rooted at the working directory.
    """
    if path is not None:
        return load_config(path)
    cwd = cwd or Path.cwd()
    candidate = cwd / DEFAULT_CONFIG_NAME
    if candidate.is_file():
        return load_config(candidate)
    log.debug("No configuration file found, using defaults", cwd=str(cwd))
    env_level = os.environ.get(ENV_LOG_LEVEL)
    try:
        global_config = GlobalConfig(log_level=env_level) if env_level else GlobalConfig()
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration value: {e}", details=e) from e
    return WatchrunConfig(root_dir=cwd.resolve(), global_config=global_config)


# 🔼⚙️
