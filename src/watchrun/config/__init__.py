#
# config/__init__.py
#
"""
Configuration handling sub-package for watchrun.

Exports the loading functions and core configuration models.
"""

from .loader import load_config, resolve_config
from .models import GlobalConfig, WatchrunConfig

__all__ = [
    "GlobalConfig",
    "WatchrunConfig",
    "load_config",
    "resolve_config",
]

# 🔼⚙️
