#
# src/watchrun/runner/__init__.py
#
"""
Test execution sub-package: the subprocess-backed run coordinator and the
parsers for its output.
"""

from .subprocess_runner import CommandResult, SubprocessRunCoordinator, run_command

__all__ = ["CommandResult", "SubprocessRunCoordinator", "run_command"]

# 🔼⚙️
