#
# src/watchrun/cli/__init__.py
#
"""
Command-line interface for watchrun.
"""

from .main import cli

__all__ = ["cli"]

# 🔼⚙️
