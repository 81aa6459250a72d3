#
# src/watchrun/reporters/__init__.py
#
"""
Reporter sub-package: the dispatcher and the default console reporter.
"""

from .console import ConsoleReporter
from .dispatcher import ReporterDispatcher

__all__ = ["ConsoleReporter", "ReporterDispatcher"]

# 🔼⚙️
